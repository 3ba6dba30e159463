from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from forge.api.v1.router import v1_router
from forge.config import Settings, settings
from forge.core.exceptions import ForgeError, forge_error_handler
from forge.core.middleware import RequestLoggingMiddleware
from forge.schemas.studio import ProviderCredentials
from forge.services.dataset import DatasetStore
from forge.services.inference.ollama import OllamaRuntime
from forge.services.providers.gemini import GeminiProvider
from forge.services.studio import Studio
from forge.services.training.controller import RunController
from forge.services.training.versions import VersionStore

_NAME_TO_LEVEL = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "warn": 30,
    "error": 40,
    "critical": 50,
}

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _NAME_TO_LEVEL.get(settings.forge_log_level.lower(), 20)
    ),
)

logger = structlog.get_logger()


def build_studio(config: Settings, http_client: httpx.AsyncClient) -> Studio:
    """Wire the run controller, curriculum and external collaborators from settings."""
    controller = RunController(
        VersionStore(),
        steps_per_epoch=config.forge_steps_per_epoch,
        tick_interval=config.forge_tick_interval_seconds,
        settle_delay=config.forge_settle_delay_seconds,
        auto_capture=config.forge_auto_capture_on_complete,
    )
    provider = GeminiProvider(
        base_url=config.gemini_base_url,
        http_client=http_client,
        text_model=config.gemini_text_model,
        planner_model=config.gemini_planner_model,
        tts_model=config.gemini_tts_model,
        video_model=config.gemini_video_model,
        video_poll_interval=config.gemini_video_poll_seconds,
    )
    runtime = OllamaRuntime(base_url=config.ollama_base_url, http_client=http_client)
    credentials = ProviderCredentials(api_key=config.gemini_api_key) if config.gemini_api_key else None
    return Studio(
        controller=controller,
        dataset=DatasetStore(),
        provider=provider,
        runtime=runtime,
        credentials=credentials,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=settings.forge_http_connect_timeout,
            read=settings.forge_http_read_timeout,
            write=5.0,
            pool=5.0,
        )
    )
    studio = build_studio(settings, http_client)
    app.state.studio = studio

    logger.info(
        "forge_backend_starting",
        ollama_url=settings.ollama_base_url,
        provider_configured=studio.has_credentials,
        tick_interval=settings.forge_tick_interval_seconds,
    )
    yield

    studio.shutdown()
    await http_client.aclose()
    logger.info("forge_backend_stopping")


app = FastAPI(
    title="Forge Studio Backend",
    description="Curriculum assembly, simulated fine-tuning runs and versioned snapshots",
    version="0.1.0",
    lifespan=lifespan,
)

# Exception handler
app.add_exception_handler(ForgeError, forge_error_handler)

# Middleware (Starlette: last-added = outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.forge_cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(v1_router)


@app.get("/")
async def root():
    return {"service": "forge-studio", "version": "0.1.0"}
