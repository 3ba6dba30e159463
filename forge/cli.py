import asyncio

import typer
from rich.console import Console
from rich.table import Table

console = Console()
cli_app = typer.Typer(name="forge", help="Forge Studio command-line tools")

_LEVEL_STYLE = {"info": "cyan", "warn": "yellow", "error": "red", "success": "green"}


def _run_async(coro):
    """Run async code from sync CLI context."""
    return asyncio.run(coro)


@cli_app.command("simulate")
def simulate(
    epochs: int = typer.Option(3, "--epochs", min=1, help="Number of epochs to simulate"),
    lessons: int = typer.Option(10, "--lessons", help="Curriculum size reported to the controller"),
    base_model: str = typer.Option("llama3:8b", "--base-model", help="Base model name"),
    tick: float = typer.Option(0.0, "--tick", min=0.0, help="Seconds between steps"),
):
    """Run one simulated fine-tuning session in the terminal."""
    from forge.schemas.training import TrainingConfig
    from forge.services.training.controller import RunController

    async def _simulate():
        controller = RunController(tick_interval=tick, settle_delay=tick)
        printed = 0

        def _echo(ctrl: RunController) -> None:
            nonlocal printed
            entries = ctrl.logs
            for entry in entries[printed:]:
                style = _LEVEL_STYLE.get(entry.level, "white")
                console.print(f"[dim]{entry.timestamp}[/dim] [{style}]{entry.message}[/{style}]")
            printed = len(entries)

        controller.subscribe(_echo)
        controller.start(TrainingConfig(base_model=base_model, epochs=epochs), lessons)
        await controller.join()
        return controller

    controller = _run_async(_simulate())

    if not controller.metrics:
        raise typer.Exit(code=1)

    table = Table(title=f"Run summary ({controller.status.value})")
    table.add_column("Epoch", style="cyan")
    table.add_column("Step", justify="right")
    table.add_column("Loss", justify="right")
    table.add_column("Accuracy", justify="right", style="green")

    steps_per_epoch = controller.total_steps // epochs
    for sample in controller.metrics:
        if sample.step % steps_per_epoch == 0:
            table.add_row(
                str(sample.step // steps_per_epoch),
                str(sample.step),
                f"{sample.loss:.4f}",
                f"{sample.accuracy * 100:.1f}%",
            )

    console.print(table)


@cli_app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP/WebSocket API."""
    import uvicorn

    uvicorn.run("forge.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli_app()
