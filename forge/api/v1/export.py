from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from forge.dependencies import get_studio
from forge.schemas.studio import ModelfileExport, NativeExport
from forge.services.studio import Studio

router = APIRouter()


@router.get("/export/modelfile", response_model=ModelfileExport)
async def export_modelfile(studio: Studio = Depends(get_studio)):
    """Ollama Modelfile for the working config; falls back to a bare FROM line without a provider."""
    return await studio.export_modelfile()


@router.get("/export/modelfile/raw", response_class=PlainTextResponse)
async def download_modelfile(studio: Studio = Depends(get_studio)):
    export = await studio.export_modelfile()
    return PlainTextResponse(
        export.content,
        headers={"Content-Disposition": 'attachment; filename="Modelfile"'},
    )


@router.get("/export/native", response_model=NativeExport)
async def export_native(studio: Studio = Depends(get_studio)):
    """llama.cpp server command and Python engine starter."""
    return studio.export_native()
