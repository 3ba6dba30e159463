from abc import ABC, abstractmethod

from forge.schemas.dataset import ForgePlan, LessonVerdict, PreferenceRanking, TrainingPair
from forge.schemas.studio import ProviderCredentials
from forge.schemas.training import (
    BATCH_SIZES,
    CONTEXT_LENGTHS,
    VISION_ENCODERS,
    ToolDefinition,
    TrainingConfig,
)


class ContentProvider(ABC):
    """Generative collaborator that writes curriculum and deployment text.

    Every call receives the caller's credential context; implementations keep no
    credential of their own.
    """

    @abstractmethod
    async def generate_lessons(
        self,
        credentials: ProviderCredentials | None,
        topic: str,
        count: int = 5,
        include_thought: bool = False,
    ) -> list[TrainingPair]:
        """Generate instruction/response lessons on a topic."""
        ...

    @abstractmethod
    async def plan_mission(
        self,
        credentials: ProviderCredentials | None,
        mission: str,
        available_models: list[str],
        base_config: TrainingConfig,
    ) -> ForgePlan:
        """Turn a free-text mission into a configuration plus starter lessons."""
        ...

    @abstractmethod
    async def verify_dataset(
        self,
        credentials: ProviderCredentials | None,
        lessons: list[TrainingPair],
    ) -> list[LessonVerdict]:
        """Mark each lesson pass/fail with an optional suggestion."""
        ...

    @abstractmethod
    async def rank_preference(
        self,
        credentials: ProviderCredentials | None,
        prompt: str,
        option_a: str,
        option_b: str,
    ) -> PreferenceRanking:
        """Pick the better of two responses and explain why."""
        ...

    @abstractmethod
    async def generate_tool_lessons(
        self,
        credentials: ProviderCredentials | None,
        tool: ToolDefinition,
        count: int = 3,
    ) -> list[TrainingPair]:
        """Generate lessons that teach the model to call a tool."""
        ...

    @abstractmethod
    async def render_modelfile(
        self,
        credentials: ProviderCredentials | None,
        config: TrainingConfig,
    ) -> str:
        """Write an Ollama Modelfile for the configuration."""
        ...

    @abstractmethod
    async def synthesize_audio(
        self,
        credentials: ProviderCredentials | None,
        text: str,
        voice: str = "Kore",
    ) -> str:
        """Speak ``text`` and return the audio as a data URI."""
        ...

    @abstractmethod
    async def synthesize_video(
        self,
        credentials: ProviderCredentials | None,
        prompt: str,
    ) -> str:
        """Render a short clip for ``prompt`` and return it as a data URI."""
        ...


def _nearest(value, allowed: tuple[int, ...], fallback: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return min(allowed, key=lambda a: abs(a - number))


def coerce_plan_config(raw: dict, base: TrainingConfig) -> TrainingConfig:
    """Merge a provider-suggested config onto ``base``, snapping fields to allowed values.

    Tools, training method and reasoning mode are never taken from the provider.
    """
    update: dict = {}

    base_model = raw.get("base_model")
    if isinstance(base_model, str) and base_model.strip():
        update["base_model"] = base_model.strip()

    epochs = raw.get("epochs")
    if isinstance(epochs, (int, float)) and epochs >= 1:
        update["epochs"] = int(round(epochs))

    learning_rate = raw.get("learning_rate")
    if isinstance(learning_rate, (int, float)) and learning_rate > 0:
        update["learning_rate"] = float(learning_rate)

    if "batch_size" in raw:
        update["batch_size"] = _nearest(raw["batch_size"], BATCH_SIZES, base.batch_size)
    if "context_length" in raw:
        update["context_length"] = _nearest(raw["context_length"], CONTEXT_LENGTHS, base.context_length)

    for flag in ("vision_enabled", "audio_enabled", "video_enabled"):
        if isinstance(raw.get(flag), bool):
            update[flag] = raw[flag]

    if raw.get("vision_encoder") in VISION_ENCODERS:
        update["vision_encoder"] = raw["vision_encoder"]

    return TrainingConfig.model_validate({**base.model_dump(), **update})
