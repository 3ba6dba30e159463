from typing import Literal

from pydantic import BaseModel, Field

from forge.schemas.training import TrainingConfig


class TrainingPair(BaseModel):
    """A single curriculum lesson."""

    id: str
    instruction: str
    response: str
    thought: str | None = None
    image: str | None = None
    video: str | None = None
    audio: str | None = None


class TrainingPairCreate(BaseModel):
    instruction: str = Field(min_length=1)
    response: str = Field(min_length=1)
    thought: str | None = None
    image: str | None = None
    video: str | None = None
    audio: str | None = None


class PreferencePair(BaseModel):
    id: str
    prompt: str
    chosen: str
    rejected: str
    critique: str | None = None


class PreferencePairCreate(BaseModel):
    prompt: str = Field(min_length=1)
    chosen: str
    rejected: str
    critique: str | None = None


class LessonList(BaseModel):
    lessons: list[TrainingPair]
    total: int


class PreferenceList(BaseModel):
    preferences: list[PreferencePair]
    total: int


# ── Provider payloads ───────────────────────────────────────────────────────


class GenerateLessonsRequest(BaseModel):
    topic: str = Field(min_length=1)
    count: int = Field(default=5, ge=1, le=50)
    include_thought: bool | None = None  # None = follow config.reasoning_mode


class ToolLessonsRequest(BaseModel):
    count: int = Field(default=3, ge=1, le=50)


class MediaLessonRequest(BaseModel):
    kind: Literal["audio", "video"] = "video"
    prompt: str = Field(min_length=1)
    voice: str = "Kore"  # audio only


class LessonVerdict(BaseModel):
    id: str
    status: Literal["pass", "fail"]
    suggestion: str | None = None


class VerificationReport(BaseModel):
    verdicts: list[LessonVerdict]
    passed: int
    failed: int


class RankRequest(BaseModel):
    prompt: str = Field(min_length=1)
    option_a: str
    option_b: str


class PreferenceRanking(BaseModel):
    winner: Literal["A", "B"]
    critique: str


class MissionRequest(BaseModel):
    mission: str = Field(min_length=1)


class ForgePlan(BaseModel):
    config: TrainingConfig
    lessons: list[TrainingPair]
    mission_briefing: str
    protocol: list[str] = []


class LessonImport(TrainingPairCreate):
    id: str | None = None
