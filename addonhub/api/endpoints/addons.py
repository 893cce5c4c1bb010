"""
Addon Endpoints
Install, remove and list addons
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from addonhub.api.dependencies import get_engine
from addonhub.core.exceptions import InvalidManifestError, ManifestFetchError
from addonhub.services.engine import AddonEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/addons", tags=["addons"])


class InstallRequest(BaseModel):
    """Request model for addon installation"""
    url: str


@router.get("")
async def list_addons(engine: AddonEngine = Depends(get_engine)):
    """Installed addons in installation order"""
    manifests = await engine.registry.list()
    return [manifest.model_dump(mode="json", exclude_none=True) for manifest in manifests]


@router.get("/capabilities")
async def addon_capabilities(engine: AddonEngine = Depends(get_engine)):
    capabilities = await engine.registry.capabilities()
    return [item.model_dump(mode="json", exclude_none=True) for item in capabilities]


@router.post("", status_code=201)
async def install_addon(request: InstallRequest, engine: AddonEngine = Depends(get_engine)):
    """
    Install an addon from its URL

    Fails with 400 when the manifest cannot be fetched or has no usable id
    """
    try:
        manifest = await engine.install_addon(request.url)
    except (ManifestFetchError, InvalidManifestError) as e:
        logger.warning(f"Addon install failed for {request.url}: {e}")
        raise HTTPException(
            status_code=400,
            detail=f"{e}. Check that the URL points to a valid addon manifest.",
        )
    return manifest.model_dump(mode="json", exclude_none=True)


@router.delete("/{addon_id}")
async def remove_addon(addon_id: str, engine: AddonEngine = Depends(get_engine)):
    removed = await engine.remove_addon(addon_id)
    return {"removed": removed}
