"""Curriculum store for SFT lessons and DPO/ORPO preference pairs."""

import structlog

from forge.core.exceptions import NotFoundError
from forge.core.ids import IdFactory, new_id
from forge.schemas.dataset import (
    LessonImport,
    PreferencePair,
    PreferencePairCreate,
    TrainingPair,
    TrainingPairCreate,
)

logger = structlog.get_logger()


class DatasetStore:
    """Ordered in-memory curriculum. Only its size matters to the run controller."""

    def __init__(self, id_factory: IdFactory = new_id):
        self._id_factory = id_factory
        self._lessons: list[TrainingPair] = []
        self._preferences: list[PreferencePair] = []

    # ── Lessons ─────────────────────────────────────────────────────────────

    @property
    def size(self) -> int:
        return len(self._lessons)

    def list_lessons(self) -> list[TrainingPair]:
        return list(self._lessons)

    def add_lesson(self, data: TrainingPairCreate) -> TrainingPair:
        lesson = TrainingPair(id=self._id_factory(), **data.model_dump())
        self._lessons.append(lesson)
        return lesson

    def extend(self, lessons: list[TrainingPair]) -> list[TrainingPair]:
        """Append already-built lessons, replacing ids that collide with existing ones."""
        existing = {lesson.id for lesson in self._lessons}
        added = []
        for lesson in lessons:
            if not lesson.id or lesson.id in existing:
                lesson = lesson.model_copy(update={"id": self._id_factory()})
            existing.add(lesson.id)
            self._lessons.append(lesson)
            added.append(lesson)
        logger.info("lessons_added", count=len(added), total=self.size)
        return added

    def replace(self, lessons: list[TrainingPair]) -> None:
        self._lessons = []
        self.extend(lessons)

    def remove_lesson(self, lesson_id: str) -> None:
        for i, lesson in enumerate(self._lessons):
            if lesson.id == lesson_id:
                del self._lessons[i]
                return
        raise NotFoundError(f"Lesson '{lesson_id}' not found.")

    def clear_lessons(self) -> None:
        self._lessons.clear()

    def import_lessons(self, records: list[LessonImport]) -> list[TrainingPair]:
        """Import a JSON curriculum export; records without an id get a fresh one."""
        lessons = [TrainingPair(**r.model_dump(exclude={"id"}), id=r.id or "") for r in records]
        return self.extend(lessons)

    def export_lessons(self) -> list[dict]:
        return [lesson.model_dump(exclude_none=True) for lesson in self._lessons]

    # ── Preferences ─────────────────────────────────────────────────────────

    def list_preferences(self) -> list[PreferencePair]:
        return list(self._preferences)

    def add_preference(self, data: PreferencePairCreate) -> PreferencePair:
        pair = PreferencePair(id=self._id_factory(), **data.model_dump())
        self._preferences.append(pair)
        return pair

    def remove_preference(self, pair_id: str) -> None:
        for i, pair in enumerate(self._preferences):
            if pair.id == pair_id:
                del self._preferences[i]
                return
        raise NotFoundError(f"Preference pair '{pair_id}' not found.")
