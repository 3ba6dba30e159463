"""Model version store. Append-only snapshots of a run, restorable into the controller."""

from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from forge.core.exceptions import NotFoundError
from forge.core.ids import IdFactory, new_id
from forge.schemas.training import ModelVersion, RunState

logger = structlog.get_logger()


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class VersionStore:
    """In-memory list of ModelVersion records in creation order.

    Nothing is evicted; the store lives as long as the process. Swapping this class
    for a persistent implementation is the extension point for durable versions.
    """

    def __init__(self, id_factory: IdFactory = new_id, now: Callable[[], str] = _utc_now):
        self._id_factory = id_factory
        self._now = now
        self._versions: list[ModelVersion] = []

    def capture(self, name: str, state: RunState) -> ModelVersion:
        """Record a deep copy of ``state`` under a fresh id."""
        state = state.model_copy(deep=True)
        version = ModelVersion(
            id=self._id_factory(),
            name=name,
            created_at=self._now(),
            config=state.config,
            metrics=tuple(state.metrics),
            logs=tuple(state.logs),
            progress=state.progress,
            status=state.status,
        )
        self._versions.append(version)
        logger.info(
            "version_captured",
            version_id=version.id,
            name=name,
            steps=len(version.metrics),
            status=version.status.value,
        )
        return version

    def get(self, version_id: str) -> ModelVersion:
        for version in self._versions:
            if version.id == version_id:
                return version
        raise NotFoundError(f"Model version '{version_id}' not found.")

    def restore(self, version_id: str) -> RunState:
        """Return the state bundle recorded for ``version_id``."""
        version = self.get(version_id)
        return RunState(
            config=version.config,
            metrics=version.metrics,
            logs=version.logs,
            progress=version.progress,
            status=version.status,
        )

    def list_versions(self) -> list[ModelVersion]:
        return list(self._versions)

    def delete(self, version_id: str) -> None:
        version = self.get(version_id)
        self._versions.remove(version)
        logger.info("version_deleted", version_id=version_id, name=version.name)

    def __len__(self) -> int:
        return len(self._versions)
