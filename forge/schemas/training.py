from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

BATCH_SIZES = (1, 4, 8, 16)
CONTEXT_LENGTHS = (1024, 2048, 4096, 8192)
VISION_ENCODERS = (
    "CLIP-ViT-L/14",
    "SigLIP-SO400M",
    "OpenCLIP-ViT-H/14",
    "EVA-CLIP-G",
)
PRESET_MODELS = (
    "llama3:8b",
    "llama3:70b",
    "mistral:v0.3",
    "phi3:latest",
    "gemma2:9b",
    "codegemma:latest",
    "qwen2:7b",
    "llama3.2-vision:latest",
    "moondream:latest",
    "ultravox:latest",
)

TrainingMethod = Literal["SFT", "DPO", "ORPO"]
LogLevel = Literal["info", "warn", "error", "success"]


class RunStatus(str, Enum):
    IDLE = "IDLE"
    PREPARING = "PREPARING"
    TRAINING = "TRAINING"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ToolDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    parameters: str = "{}"  # JSON schema text, opaque to the simulator


class TrainingConfig(BaseModel):
    """Immutable description of a run. Edits produce a new value via model_copy."""

    model_config = ConfigDict(frozen=True)

    base_model: str = "llama3:8b"
    epochs: int = Field(default=3, ge=1)
    learning_rate: float = Field(default=0.00005, gt=0)
    batch_size: int = 4
    context_length: int = 2048
    vision_enabled: bool = False
    vision_encoder: str = "CLIP-ViT-L/14"
    audio_enabled: bool = False
    video_enabled: bool = False
    tools: tuple[ToolDefinition, ...] = ()
    training_method: TrainingMethod = "SFT"
    reasoning_mode: bool = True

    @field_validator("batch_size")
    @classmethod
    def _check_batch_size(cls, v: int) -> int:
        if v not in BATCH_SIZES:
            raise ValueError(f"batch_size must be one of {list(BATCH_SIZES)}")
        return v

    @field_validator("context_length")
    @classmethod
    def _check_context_length(cls, v: int) -> int:
        if v not in CONTEXT_LENGTHS:
            raise ValueError(f"context_length must be one of {list(CONTEXT_LENGTHS)}")
        return v

    @field_validator("vision_encoder")
    @classmethod
    def _check_vision_encoder(cls, v: str) -> str:
        if v not in VISION_ENCODERS:
            raise ValueError(f"vision_encoder must be one of {list(VISION_ENCODERS)}")
        return v


class MetricSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=1)
    loss: float = Field(ge=0)
    accuracy: float = Field(ge=0, le=1)


class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str
    level: LogLevel
    message: str


class RunState(BaseModel):
    """Point-in-time bundle of a controller's live state."""

    model_config = ConfigDict(frozen=True)

    config: TrainingConfig
    metrics: tuple[MetricSample, ...] = ()
    logs: tuple[LogEntry, ...] = ()
    progress: float = Field(default=0.0, ge=0, le=100)
    status: RunStatus = RunStatus.IDLE


class ModelVersion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    created_at: str
    config: TrainingConfig
    metrics: tuple[MetricSample, ...]
    logs: tuple[LogEntry, ...]
    progress: float
    status: RunStatus


# ── API payloads ────────────────────────────────────────────────────────────


class RunStateResponse(BaseModel):
    status: RunStatus
    progress: float
    step: int
    total_steps: int
    config: TrainingConfig | None = None
    latest: MetricSample | None = None
    log_count: int = 0


class ModelVersionSummary(BaseModel):
    id: str
    name: str
    created_at: str
    progress: float
    status: RunStatus
    steps: int


class ModelVersionList(BaseModel):
    versions: list[ModelVersionSummary]
    total: int


class CaptureVersionRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class ToolCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    parameters: str = "{}"


class RunCommandResponse(BaseModel):
    accepted: bool
    run: RunStateResponse
