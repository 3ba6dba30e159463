import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from forge.api.v1.training import run_state

router = APIRouter()


@router.websocket("/ws/training")
async def training_ws(
    websocket: WebSocket,
    interval: float = Query(default=0.5, ge=0.05, le=10.0),
):
    """Push the run state whenever status, step, progress or the log changes.

    Each message carries only the log entries the client has not seen yet; ``reset``
    is set when the log was replaced (fresh run or restored version).
    """
    studio = websocket.app.state.studio
    await websocket.accept()

    last_fingerprint = None
    sent_logs = 0

    try:
        while True:
            controller = studio.controller
            logs = controller.logs
            fingerprint = (controller.status, controller.step, controller.progress, len(logs))

            if fingerprint != last_fingerprint:
                reset = len(logs) < sent_logs
                if reset:
                    sent_logs = 0
                await websocket.send_json({
                    "type": "run",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "reset": reset,
                    "run": run_state(controller).model_dump(mode="json"),
                    "logs": [entry.model_dump(mode="json") for entry in logs[sent_logs:]],
                })
                sent_logs = len(logs)
                last_fingerprint = fingerprint

            await asyncio.sleep(interval)
    except WebSocketDisconnect:
        pass
