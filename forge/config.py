from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    forge_log_level: str = "info"

    # CORS
    forge_cors_origins: str = "http://localhost:5173"

    # Training simulator
    forge_steps_per_epoch: int = 10
    forge_tick_interval_seconds: float = 0.5
    forge_settle_delay_seconds: float = 1.0
    forge_auto_capture_on_complete: bool = False

    # Generative content provider (Gemini REST API)
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    gemini_api_key: str | None = None  # Seeds the studio credential at startup only
    gemini_text_model: str = "gemini-3-flash-preview"
    gemini_planner_model: str = "gemini-1.5-flash-latest"
    gemini_tts_model: str = "gemini-2.5-flash-preview-tts"
    gemini_video_model: str = "veo-3.1-fast-generate-preview"
    gemini_video_poll_seconds: float = 5.0

    # Local inference daemon
    ollama_base_url: str = "http://localhost:11434"

    # HTTP client timeouts (seconds)
    forge_http_connect_timeout: float = 5.0
    forge_http_read_timeout: float = 120.0

    model_config = {"env_prefix": "", "case_sensitive": False, "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
