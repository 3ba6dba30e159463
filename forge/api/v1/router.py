from fastapi import APIRouter

from forge.api.v1.dataset import router as dataset_router
from forge.api.v1.export import router as export_router
from forge.api.v1.health import router as health_router
from forge.api.v1.studio import router as studio_router
from forge.api.v1.training import router as training_router
from forge.api.v1.websocket import router as websocket_router

v1_router = APIRouter()

v1_router.include_router(health_router, tags=["Health"])
v1_router.include_router(studio_router, tags=["Studio"])
v1_router.include_router(dataset_router, tags=["Dataset"])
v1_router.include_router(training_router, tags=["Training"])
v1_router.include_router(export_router, tags=["Export"])

# WebSocket
v1_router.include_router(websocket_router, tags=["WebSocket"])
