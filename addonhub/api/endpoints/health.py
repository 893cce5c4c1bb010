"""
Health Check Endpoint
"""
from fastapi import APIRouter, Depends
from addonhub.api.dependencies import get_engine
from addonhub.core.config import settings
from addonhub.services.engine import AddonEngine

router = APIRouter()


@router.get("/health")
async def health_check(engine: AddonEngine = Depends(get_engine)):
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "base_url": settings.BASE_URL,
        "addons": len(await engine.registry.list()),
    }
