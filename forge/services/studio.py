"""Studio: owns the working configuration, the curriculum and the provider credential,
and forwards user commands to the run controller."""

import structlog

from forge.core.exceptions import ForgeError, NotFoundError
from forge.core.ids import IdFactory, new_id
from forge.schemas.dataset import (
    ForgePlan,
    GenerateLessonsRequest,
    MediaLessonRequest,
    PreferencePair,
    PreferencePairCreate,
    RankRequest,
    TrainingPair,
    TrainingPairCreate,
    VerificationReport,
)
from forge.schemas.studio import (
    ModelfileExport,
    NativeExport,
    ProviderCredentials,
    RuntimeStatus,
)
from forge.schemas.training import (
    PRESET_MODELS,
    ModelVersion,
    RunState,
    ToolCreate,
    ToolDefinition,
    TrainingConfig,
)
from forge.services.dataset import DatasetStore
from forge.services.export import build_modelfile, build_native, fallback_modelfile
from forge.services.inference.ollama import OllamaRuntime
from forge.services.providers.base import ContentProvider
from forge.services.training.controller import RunController

logger = structlog.get_logger()


class Studio:
    def __init__(
        self,
        controller: RunController,
        dataset: DatasetStore,
        provider: ContentProvider,
        runtime: OllamaRuntime,
        config: TrainingConfig | None = None,
        credentials: ProviderCredentials | None = None,
        id_factory: IdFactory = new_id,
    ):
        self.controller = controller
        self.dataset = dataset
        self.provider = provider
        self.runtime = runtime
        self._config = config or TrainingConfig()
        self._credentials = credentials
        self._id_factory = id_factory

    # ── Configuration ───────────────────────────────────────────────────────

    @property
    def config(self) -> TrainingConfig:
        return self._config

    def update_config(self, config: TrainingConfig) -> TrainingConfig:
        self._config = config
        logger.info("config_updated", base_model=config.base_model, epochs=config.epochs)
        return config

    def add_tool(self, data: ToolCreate) -> ToolDefinition:
        tool = ToolDefinition(id=self._id_factory(), **data.model_dump())
        self._config = self._config.model_copy(update={"tools": (*self._config.tools, tool)})
        return tool

    def remove_tool(self, tool_id: str) -> None:
        remaining = tuple(t for t in self._config.tools if t.id != tool_id)
        if len(remaining) == len(self._config.tools):
            raise NotFoundError(f"Tool '{tool_id}' not found.")
        self._config = self._config.model_copy(update={"tools": remaining})

    def get_tool(self, tool_id: str) -> ToolDefinition:
        for tool in self._config.tools:
            if tool.id == tool_id:
                return tool
        raise NotFoundError(f"Tool '{tool_id}' not found.")

    # ── Credential context ──────────────────────────────────────────────────

    @property
    def has_credentials(self) -> bool:
        return self._credentials is not None

    def set_credentials(self, credentials: ProviderCredentials) -> None:
        self._credentials = credentials
        logger.info("provider_credentials_set")

    def clear_credentials(self) -> None:
        self._credentials = None
        logger.info("provider_credentials_cleared")

    # ── Run commands ────────────────────────────────────────────────────────

    def start_run(self) -> bool:
        return self.controller.start(self._config, self.dataset.size)

    def interrupt_run(self) -> bool:
        return self.controller.interrupt()

    def resume_run(self) -> bool:
        return self.controller.resume()

    def capture_version(self, name: str) -> ModelVersion:
        return self.controller.capture_version(name)

    def restore_version(self, version_id: str) -> RunState:
        """Restore a version into the controller and adopt its configuration as the working one."""
        state = self.controller.restore_version(version_id)
        self._config = state.config
        return state

    # ── Curriculum generation ───────────────────────────────────────────────

    async def generate_lessons(self, data: GenerateLessonsRequest) -> list[TrainingPair]:
        include_thought = self._config.reasoning_mode if data.include_thought is None else data.include_thought
        lessons = await self.provider.generate_lessons(self._credentials, data.topic, data.count, include_thought)
        return self.dataset.extend(lessons)

    async def generate_tool_lessons(self, tool_id: str, count: int) -> list[TrainingPair]:
        tool = self.get_tool(tool_id)
        lessons = await self.provider.generate_tool_lessons(self._credentials, tool, count)
        return self.dataset.extend(lessons)

    async def forge_media(self, data: MediaLessonRequest) -> TrainingPair:
        """Synthesize an audio or video asset and append it to the curriculum as a lesson."""
        if data.kind == "audio":
            uri = await self.provider.synthesize_audio(self._credentials, data.prompt, data.voice)
        else:
            uri = await self.provider.synthesize_video(self._credentials, data.prompt)
        lesson = self.dataset.add_lesson(
            TrainingPairCreate(
                instruction=f"Generate a {data.kind} based on: {data.prompt}",
                response=f"[Generated {data.kind} stream]",
                **{data.kind: uri},
            )
        )
        logger.info("media_lesson_added", kind=data.kind, lesson_id=lesson.id)
        return lesson

    async def verify_dataset(self) -> VerificationReport:
        verdicts = await self.provider.verify_dataset(self._credentials, self.dataset.list_lessons())
        passed = sum(1 for v in verdicts if v.status == "pass")
        return VerificationReport(verdicts=verdicts, passed=passed, failed=len(verdicts) - passed)

    async def rank_preference(self, data: RankRequest) -> PreferencePair:
        ranking = await self.provider.rank_preference(self._credentials, data.prompt, data.option_a, data.option_b)
        chosen, rejected = (
            (data.option_a, data.option_b) if ranking.winner == "A" else (data.option_b, data.option_a)
        )
        return self.dataset.add_preference(
            PreferencePairCreate(prompt=data.prompt, chosen=chosen, rejected=rejected, critique=ranking.critique)
        )

    async def autoforge(self, mission: str) -> ForgePlan:
        """Plan a run from a mission statement and install its config and lessons."""
        status = await self.runtime_status()
        plan = await self.provider.plan_mission(self._credentials, mission, status.installed_models, self._config)
        self._config = plan.config
        self.dataset.replace(plan.lessons)
        logger.info("autoforge_plan_installed", base_model=plan.config.base_model, lessons=len(plan.lessons))
        return plan.model_copy(update={"lessons": self.dataset.list_lessons()})

    # ── Local runtime and export ────────────────────────────────────────────

    async def runtime_status(self) -> RuntimeStatus:
        if not await self.runtime.check_status():
            return RuntimeStatus(available=False, catalogue=list(PRESET_MODELS))
        try:
            installed = await self.runtime.list_installed_models()
        except ForgeError:
            installed = []
        return RuntimeStatus(available=True, installed_models=installed, catalogue=installed or list(PRESET_MODELS))

    async def export_modelfile(self) -> ModelfileExport:
        try:
            body = await self.provider.render_modelfile(self._credentials, self._config)
        except ForgeError as e:
            logger.info("modelfile_fallback", reason=e.code)
            body = fallback_modelfile(self._config)
        return build_modelfile(self._config, body)

    def export_native(self) -> NativeExport:
        return build_native(self._config)

    def shutdown(self) -> None:
        self.controller.shutdown()
