from fastapi import APIRouter, Depends

from forge.dependencies import get_studio
from forge.schemas.dataset import (
    ForgePlan,
    GenerateLessonsRequest,
    LessonImport,
    LessonList,
    MediaLessonRequest,
    MissionRequest,
    PreferenceList,
    PreferencePair,
    PreferencePairCreate,
    RankRequest,
    ToolLessonsRequest,
    TrainingPair,
    TrainingPairCreate,
    VerificationReport,
)
from forge.services.studio import Studio

router = APIRouter()


# ── Lessons ─────────────────────────────────────────────────────────────────


@router.get("/studio/dataset/lessons", response_model=LessonList)
async def list_lessons(studio: Studio = Depends(get_studio)):
    lessons = studio.dataset.list_lessons()
    return LessonList(lessons=lessons, total=len(lessons))


@router.post("/studio/dataset/lessons", response_model=TrainingPair, status_code=201)
async def add_lesson(data: TrainingPairCreate, studio: Studio = Depends(get_studio)):
    return studio.dataset.add_lesson(data)


@router.delete("/studio/dataset/lessons", status_code=204)
async def clear_lessons(studio: Studio = Depends(get_studio)):
    studio.dataset.clear_lessons()


@router.delete("/studio/dataset/lessons/{lesson_id}", status_code=204)
async def remove_lesson(lesson_id: str, studio: Studio = Depends(get_studio)):
    studio.dataset.remove_lesson(lesson_id)


@router.post("/studio/dataset/import", response_model=LessonList, status_code=201)
async def import_lessons(records: list[LessonImport], studio: Studio = Depends(get_studio)):
    """Append a curriculum previously produced by the export endpoint."""
    added = studio.dataset.import_lessons(records)
    return LessonList(lessons=added, total=len(added))


@router.get("/studio/dataset/export")
async def export_lessons(studio: Studio = Depends(get_studio)) -> list[dict]:
    return studio.dataset.export_lessons()


@router.post("/studio/dataset/generate", response_model=LessonList, status_code=201)
async def generate_lessons(data: GenerateLessonsRequest, studio: Studio = Depends(get_studio)):
    """Ask the content provider for lessons on a topic and append them."""
    added = await studio.generate_lessons(data)
    return LessonList(lessons=added, total=len(added))


@router.post("/studio/dataset/media", response_model=TrainingPair, status_code=201)
async def forge_media(data: MediaLessonRequest, studio: Studio = Depends(get_studio)):
    """Synthesize an audio or video asset and append it as a lesson."""
    return await studio.forge_media(data)


@router.post("/studio/dataset/verify", response_model=VerificationReport)
async def verify_lessons(studio: Studio = Depends(get_studio)):
    return await studio.verify_dataset()


@router.post("/studio/tools/{tool_id}/lessons", response_model=LessonList, status_code=201)
async def generate_tool_lessons(
    tool_id: str,
    data: ToolLessonsRequest | None = None,
    studio: Studio = Depends(get_studio),
):
    count = data.count if data else ToolLessonsRequest().count
    added = await studio.generate_tool_lessons(tool_id, count)
    return LessonList(lessons=added, total=len(added))


# ── Preferences ─────────────────────────────────────────────────────────────


@router.get("/studio/preferences", response_model=PreferenceList)
async def list_preferences(studio: Studio = Depends(get_studio)):
    preferences = studio.dataset.list_preferences()
    return PreferenceList(preferences=preferences, total=len(preferences))


@router.post("/studio/preferences", response_model=PreferencePair, status_code=201)
async def add_preference(data: PreferencePairCreate, studio: Studio = Depends(get_studio)):
    return studio.dataset.add_preference(data)


@router.delete("/studio/preferences/{pair_id}", status_code=204)
async def remove_preference(pair_id: str, studio: Studio = Depends(get_studio)):
    studio.dataset.remove_preference(pair_id)


@router.post("/studio/preferences/rank", response_model=PreferencePair, status_code=201)
async def rank_preference(data: RankRequest, studio: Studio = Depends(get_studio)):
    """Let the provider pick chosen/rejected between two options and store the pair."""
    return await studio.rank_preference(data)


# ── AutoForge ───────────────────────────────────────────────────────────────


@router.post("/studio/autoforge", response_model=ForgePlan)
async def autoforge(data: MissionRequest, studio: Studio = Depends(get_studio)):
    """Plan config and starter curriculum from a mission, replacing the current lessons."""
    return await studio.autoforge(data.mission)
