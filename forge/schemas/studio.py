from pydantic import BaseModel, Field


class ProviderCredentials(BaseModel):
    """Bearer credential for the generative content provider, held in memory only."""

    api_key: str = Field(min_length=1)


class CredentialStatus(BaseModel):
    configured: bool


class RuntimeStatus(BaseModel):
    available: bool
    installed_models: list[str] = []
    catalogue: list[str] = []


class ModelfileExport(BaseModel):
    base_model: str
    vision_enabled: bool
    content: str


class NativeExport(BaseModel):
    server_command: str
    engine_script: str


class HealthResponse(BaseModel):
    status: str
    run_status: str
    provider_configured: bool
    uptime_seconds: float
