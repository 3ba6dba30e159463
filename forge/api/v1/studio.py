from fastapi import APIRouter, Depends

from forge.dependencies import get_studio
from forge.schemas.studio import CredentialStatus, ProviderCredentials, RuntimeStatus
from forge.schemas.training import ToolCreate, ToolDefinition, TrainingConfig
from forge.services.studio import Studio

router = APIRouter()


@router.get("/studio/config", response_model=TrainingConfig)
async def get_config(studio: Studio = Depends(get_studio)):
    """The working configuration used by the next run."""
    return studio.config


@router.put("/studio/config", response_model=TrainingConfig)
async def update_config(data: TrainingConfig, studio: Studio = Depends(get_studio)):
    """Replace the working configuration. The live run keeps the config it started with."""
    return studio.update_config(data)


@router.post("/studio/config/tools", response_model=ToolDefinition, status_code=201)
async def add_tool(data: ToolCreate, studio: Studio = Depends(get_studio)):
    return studio.add_tool(data)


@router.delete("/studio/config/tools/{tool_id}", status_code=204)
async def remove_tool(tool_id: str, studio: Studio = Depends(get_studio)):
    studio.remove_tool(tool_id)


# ── Provider credential ─────────────────────────────────────────────────────


@router.get("/studio/credentials", response_model=CredentialStatus)
async def get_credentials(studio: Studio = Depends(get_studio)):
    return CredentialStatus(configured=studio.has_credentials)


@router.put("/studio/credentials", response_model=CredentialStatus)
async def set_credentials(data: ProviderCredentials, studio: Studio = Depends(get_studio)):
    """Hold the provider API key in memory for this process."""
    studio.set_credentials(data)
    return CredentialStatus(configured=True)


@router.delete("/studio/credentials", response_model=CredentialStatus)
async def clear_credentials(studio: Studio = Depends(get_studio)):
    studio.clear_credentials()
    return CredentialStatus(configured=False)


# ── Local runtime ───────────────────────────────────────────────────────────


@router.get("/studio/runtime", response_model=RuntimeStatus)
async def get_runtime(studio: Studio = Depends(get_studio)):
    """Whether a local Ollama daemon is up, and the model catalogue to pick from."""
    return await studio.runtime_status()
