"""Run controller: the simulated training state machine and its tick loop.

All state lives on one asyncio event loop. Commands (start, interrupt, resume,
capture, restore) are synchronous methods and the tick loop only mutates state
between awaits, so a command never interleaves with a half-applied tick. A host
that calls in from other threads must marshal onto the loop first
(``loop.call_soon_threadsafe``) rather than lock around this class.
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from forge.core.exceptions import ConcurrentRestoreError
from forge.schemas.training import (
    LogEntry,
    MetricSample,
    ModelVersion,
    RunState,
    RunStatus,
    TrainingConfig,
)
from forge.services.training.telemetry import (
    Clock,
    DecayCurve,
    LogStream,
    MetricSeries,
    display_time,
)
from forge.services.training.versions import VersionStore

logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[None]]
Listener = Callable[["RunController"], None]

STEPS_PER_EPOCH = 10
LOG_EVERY_STEPS = 5

# status -> commands that have a transition out of it
_STARTABLE = {RunStatus.IDLE, RunStatus.COMPLETED, RunStatus.FAILED}
_FAILABLE = {RunStatus.PREPARING, RunStatus.TRAINING, RunStatus.PAUSED}


class RunController:
    """Drives one simulated run at a time: IDLE → PREPARING → TRAINING → PAUSED/COMPLETED/FAILED."""

    def __init__(
        self,
        versions: VersionStore | None = None,
        *,
        config: TrainingConfig | None = None,
        steps_per_epoch: int = STEPS_PER_EPOCH,
        tick_interval: float = 0.5,
        settle_delay: float = 1.0,
        curve: DecayCurve | None = None,
        clock: Clock = display_time,
        sleep: Sleep = asyncio.sleep,
        auto_capture: bool = False,
    ):
        self._versions = versions if versions is not None else VersionStore()
        self._config = config or TrainingConfig()
        self._steps_per_epoch = steps_per_epoch
        self._tick_interval = tick_interval
        self._settle_delay = settle_delay
        self._curve = curve or DecayCurve()
        self._clock = clock
        self._sleep = sleep
        self._auto_capture = auto_capture

        self._status = RunStatus.IDLE
        self._progress = 0.0
        self._metrics = MetricSeries()
        self._logs = LogStream(clock=clock)
        self._task: asyncio.Task | None = None
        self._listeners: list[Listener] = []

    # ── Read accessors ──────────────────────────────────────────────────────

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def config(self) -> TrainingConfig:
        return self._config

    @property
    def step(self) -> int:
        return self._metrics.last_step

    @property
    def total_steps(self) -> int:
        return self._config.epochs * self._steps_per_epoch

    @property
    def metrics(self) -> tuple[MetricSample, ...]:
        return self._metrics.read_all()

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        return self._logs.read_all()

    def tail_logs(self, n: int) -> tuple[LogEntry, ...]:
        return self._logs.tail(n)

    @property
    def versions(self) -> VersionStore:
        return self._versions

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    def state(self) -> RunState:
        return RunState(
            config=self._config,
            metrics=self._metrics.read_all(),
            logs=self._logs.read_all(),
            progress=self._progress,
            status=self._status,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(controller)`` after every state change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ── Commands ────────────────────────────────────────────────────────────

    def start(self, config: TrainingConfig, dataset_size: int) -> bool:
        """Begin a fresh run. Returns False when the start was rejected or ignored."""
        if self._status not in _STARTABLE:
            self._ignore("start")
            return False

        if dataset_size <= 0:
            self._logs.append("Curriculum empty. Load data first.", "error")
            logger.warning("start_rejected", reason="empty_curriculum", status=self._status.value)
            self._notify()
            return False

        self._config = config
        self._metrics.clear()
        self._logs.clear()
        self._progress = 0.0
        self._status = RunStatus.PREPARING
        self._logs.append(
            f"Preparing {config.training_method} run on {config.base_model}: "
            f"{dataset_size} lessons, {self.total_steps} steps."
        )
        logger.info(
            "run_started",
            base_model=config.base_model,
            method=config.training_method,
            dataset_size=dataset_size,
            total_steps=self.total_steps,
        )
        self._schedule(settle=True)
        self._notify()
        return True

    def interrupt(self) -> bool:
        if self._status is not RunStatus.TRAINING:
            self._ignore("interrupt")
            return False

        self._cancel_task()
        self._status = RunStatus.PAUSED
        self._logs.append("Neural tempering interrupted.", "warn")
        logger.info("run_interrupted", step=self.step, total_steps=self.total_steps)
        self._notify()
        return True

    def resume(self) -> bool:
        if self._status is not RunStatus.PAUSED:
            self._ignore("resume")
            return False

        self._status = RunStatus.TRAINING
        self._logs.append(f"Neural tempering resumed at step {self.step + 1}.")
        logger.info("run_resumed", step=self.step, total_steps=self.total_steps)
        self._schedule(settle=False)
        self._notify()
        return True

    def fail(self, reason: str) -> bool:
        """External fault signal from a real trainer."""
        if self._status not in _FAILABLE:
            self._ignore("fail")
            return False

        self._cancel_task()
        self._status = RunStatus.FAILED
        self._logs.append(f"Run failed: {reason}", "error")
        logger.error("run_failed", step=self.step, reason=reason)
        self._notify()
        return True

    def capture_version(self, name: str) -> ModelVersion:
        return self._versions.capture(name, self.state())

    def restore_version(self, version_id: str) -> RunState:
        """Replace the live state with a captured version.

        A snapshot taken mid-run (TRAINING) resumes ticking from its last step and a
        PREPARING snapshot re-arms the settle delay; other statuses install as-is.
        """
        if self._status in (RunStatus.PREPARING, RunStatus.TRAINING) or self.is_scheduled:
            raise ConcurrentRestoreError(
                f"Cannot restore version '{version_id}' while the run is {self._status.value}."
            )

        state = self._versions.restore(version_id)
        self._config = state.config
        self._metrics = MetricSeries(state.metrics)
        self._logs = LogStream(state.logs, clock=self._clock)
        self._progress = state.progress
        self._status = state.status
        logger.info("version_restored", version_id=version_id, status=state.status.value, step=self.step)

        if state.status is RunStatus.TRAINING:
            self._schedule(settle=False)
        elif state.status is RunStatus.PREPARING:
            self._schedule(settle=True)
        self._notify()
        return state

    async def join(self) -> None:
        """Wait until the tick loop stops (completion, interrupt, or failure)."""
        while self._task is not None:
            task = self._task
            await asyncio.wait({task})
            if self._task is task:
                self._task = None

    def shutdown(self) -> None:
        self._cancel_task()

    # ── Tick loop ───────────────────────────────────────────────────────────

    def _schedule(self, settle: bool) -> None:
        self._task = asyncio.get_running_loop().create_task(self._drive(settle))

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _drive(self, settle: bool) -> None:
        try:
            if settle:
                await self._sleep(self._settle_delay)
                if self._status is not RunStatus.PREPARING:
                    return
                self._status = RunStatus.TRAINING
                self._logs.append("Neural tempering engaged.")
                self._notify()

            while self._status is RunStatus.TRAINING:
                await self._sleep(self._tick_interval)
                if self._status is not RunStatus.TRAINING:
                    return
                self._tick()
        finally:
            if self._task is asyncio.current_task():
                self._task = None

    def _tick(self) -> None:
        step = self._metrics.last_step + 1
        try:
            sample = self._curve.sample(step)
        except Exception as e:
            self.fail(f"metric computation failed at step {step}: {e}")
            return

        total = self.total_steps
        self._progress = min(100.0, max(0.0, step / total * 100))
        self._metrics.append(sample)

        if step % LOG_EVERY_STEPS == 0:
            cycle = step // self._steps_per_epoch + 1
            self._logs.append(
                f"Cycle {cycle} | Convergence: {sample.accuracy * 100:.1f}% | Error: {sample.loss:.4f}"
            )

        if step >= total:
            self._status = RunStatus.COMPLETED
            self._progress = 100.0
            self._logs.append("Neural casting finalized. Weights stabilized.", "success")
            logger.info("run_completed", steps=step, loss=round(sample.loss, 4), accuracy=round(sample.accuracy, 4))
            if self._auto_capture:
                self.capture_version(f"{self._config.base_model} (completed)")

        self._notify()

    # ── Helpers ─────────────────────────────────────────────────────────────

    def _ignore(self, command: str) -> None:
        logger.debug("command_ignored", command=command, status=self._status.value)

    def _notify(self) -> None:
        # A failing listener must not stall the tick loop or skip the others.
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("listener_failed", listener=repr(listener), status=self._status.value)
