"""
Catalog Endpoints
Catalog preferences, catalog pages and meta details
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from pydantic import BaseModel
from addonhub.api.dependencies import get_engine
from addonhub.core.exceptions import AddonRequestError
from addonhub.services.engine import AddonEngine

logger = logging.getLogger(__name__)
router = APIRouter(tags=["catalogs"])

RESERVED_QUERY_PARAMS = {"page"}


class PreferenceUpdate(BaseModel):
    """Request model for catalog preference updates"""
    enabled: bool
    order: Optional[int] = None


@router.get("/catalogs")
async def enabled_catalogs(engine: AddonEngine = Depends(get_engine)):
    """Enabled catalogs in home-feed order"""
    entries = await engine.enabled_catalogs()
    return [
        {
            "addonId": entry.addonId,
            "addonName": entry.addon.name,
            "catalog": entry.catalog.model_dump(mode="json", exclude_none=True),
        }
        for entry in entries
    ]


@router.get("/catalogs/preferences")
async def catalog_preferences(engine: AddonEngine = Depends(get_engine)):
    preferences = await engine.preferences.snapshot()
    return {key: pref.model_dump() for key, pref in preferences.items()}


@router.put("/catalogs/preferences/{addon_id}/{type}/{catalog_id}")
async def update_catalog_preference(
    update: PreferenceUpdate,
    addon_id: str = Path(..., description="Addon id"),
    type: str = Path(..., description="Catalog content type"),
    catalog_id: str = Path(..., description="Catalog id"),
    engine: AddonEngine = Depends(get_engine)
):
    pref = await engine.preferences.set(addon_id, type, catalog_id, update.enabled, update.order)
    return pref.model_dump()


@router.get("/catalog/{addon_id}/{type}/{catalog_id}")
async def get_catalog(
    request: Request,
    addon_id: str = Path(..., description="Addon id"),
    type: str = Path(..., description="Catalog content type"),
    catalog_id: str = Path(..., description="Catalog id"),
    page: int = Query(1, ge=1),
    engine: AddonEngine = Depends(get_engine)
):
    """
    One page of an addon catalog

    Query parameters other than page are forwarded as catalog filters
    (e.g. ?genre=Action).
    """
    manifest = await engine.registry.get(addon_id)
    if manifest is None:
        raise HTTPException(status_code=404, detail=f"Addon {addon_id} is not installed")

    filters = [
        (name, value) for name, value in request.query_params.items()
        if name not in RESERVED_QUERY_PARAMS
    ]
    try:
        metas = await engine.catalogs.get_catalog(manifest, type, catalog_id, page, filters)
    except AddonRequestError as e:
        logger.error(f"Catalog {addon_id}/{type}/{catalog_id} failed: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to fetch catalog from {manifest.name or addon_id}")

    return {"metas": [meta.model_dump(mode="json", exclude_none=True) for meta in metas]}


@router.get("/meta/{type}/{id}")
async def get_meta(
    type: str = Path(..., description="Content type: movie or series"),
    id: str = Path(..., description="Content id"),
    engine: AddonEngine = Depends(get_engine)
):
    meta = await engine.catalogs.get_meta_details(type, id)
    if meta is None:
        raise HTTPException(status_code=404, detail="No metadata found")
    return {"meta": meta.model_dump(mode="json", exclude_none=True)}
