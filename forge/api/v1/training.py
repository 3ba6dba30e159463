from fastapi import APIRouter, Depends, Query

from forge.dependencies import get_studio
from forge.schemas.training import (
    CaptureVersionRequest,
    LogEntry,
    MetricSample,
    ModelVersion,
    ModelVersionList,
    ModelVersionSummary,
    RunCommandResponse,
    RunStateResponse,
)
from forge.services.studio import Studio
from forge.services.training.controller import RunController

router = APIRouter()


def run_state(controller: RunController) -> RunStateResponse:
    metrics = controller.metrics
    return RunStateResponse(
        status=controller.status,
        progress=controller.progress,
        step=controller.step,
        total_steps=controller.total_steps,
        config=controller.config,
        latest=metrics[-1] if metrics else None,
        log_count=len(controller.logs),
    )


def _summary(version: ModelVersion) -> ModelVersionSummary:
    return ModelVersionSummary(
        id=version.id,
        name=version.name,
        created_at=version.created_at,
        progress=version.progress,
        status=version.status,
        steps=len(version.metrics),
    )


# ── Run control ─────────────────────────────────────────────────────────────


@router.get("/training/run", response_model=RunStateResponse)
async def get_run(studio: Studio = Depends(get_studio)):
    """Current status, progress and latest sample of the live run."""
    return run_state(studio.controller)


@router.post("/training/run/start", response_model=RunCommandResponse)
async def start_run(studio: Studio = Depends(get_studio)):
    """Start a fresh run with the working config and curriculum.

    An empty curriculum is rejected with an error log entry, not an HTTP error.
    """
    accepted = studio.start_run()
    return RunCommandResponse(accepted=accepted, run=run_state(studio.controller))


@router.post("/training/run/interrupt", response_model=RunCommandResponse)
async def interrupt_run(studio: Studio = Depends(get_studio)):
    accepted = studio.interrupt_run()
    return RunCommandResponse(accepted=accepted, run=run_state(studio.controller))


@router.post("/training/run/resume", response_model=RunCommandResponse)
async def resume_run(studio: Studio = Depends(get_studio)):
    accepted = studio.resume_run()
    return RunCommandResponse(accepted=accepted, run=run_state(studio.controller))


@router.get("/training/run/metrics", response_model=list[MetricSample])
async def get_run_metrics(
    since: int = Query(default=0, ge=0, description="Only samples with step greater than this"),
    studio: Studio = Depends(get_studio),
):
    return [m for m in studio.controller.metrics if m.step > since]


@router.get("/training/run/logs", response_model=list[LogEntry])
async def get_run_logs(
    tail: int | None = Query(default=None, ge=1, le=1000),
    studio: Studio = Depends(get_studio),
):
    if tail:
        return list(studio.controller.tail_logs(tail))
    return list(studio.controller.logs)


# ── Model versions ──────────────────────────────────────────────────────────


@router.get("/training/versions", response_model=ModelVersionList)
async def list_versions(studio: Studio = Depends(get_studio)):
    """List captured versions in creation order."""
    versions = studio.controller.versions.list_versions()
    return ModelVersionList(versions=[_summary(v) for v in versions], total=len(versions))


@router.post("/training/versions", response_model=ModelVersion, status_code=201)
async def capture_version(data: CaptureVersionRequest, studio: Studio = Depends(get_studio)):
    """Snapshot the live run (config, metrics, logs, progress, status)."""
    return studio.capture_version(data.name)


@router.get("/training/versions/{version_id}", response_model=ModelVersion)
async def get_version(version_id: str, studio: Studio = Depends(get_studio)):
    return studio.controller.versions.get(version_id)


@router.post("/training/versions/{version_id}/restore", response_model=RunStateResponse)
async def restore_version(version_id: str, studio: Studio = Depends(get_studio)):
    """Replace the live run with a captured version. 409 while a run is in progress."""
    studio.restore_version(version_id)
    return run_state(studio.controller)


@router.delete("/training/versions/{version_id}", status_code=204)
async def delete_version(version_id: str, studio: Studio = Depends(get_studio)):
    studio.controller.versions.delete(version_id)
