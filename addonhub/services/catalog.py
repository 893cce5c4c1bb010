"""
Catalog Client
Fetches catalog listings and meta details from installed addons
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple
from pydantic import ValidationError
from addonhub.core.config import settings
from addonhub.core.exceptions import AddonRequestError
from addonhub.models.addon import Manifest, Meta, MetaDetails
from addonhub.services.http import AddonHttpClient
from addonhub.services.manifest import addon_base_url
from addonhub.services.registry import AddonRegistry

logger = logging.getLogger(__name__)

CINEMETA_ID = "com.linvo.cinemeta"

CatalogFilter = Tuple[str, Any]


def _parse_metas(data: Any) -> List[Meta]:
    if not isinstance(data, dict) or not isinstance(data.get("metas"), list):
        return []
    metas = []
    for item in data["metas"]:
        try:
            metas.append(Meta.model_validate(item))
        except ValidationError:
            continue
    return metas


class CatalogClient:
    """Catalog and meta resources of installed addons"""

    def __init__(
        self,
        registry: AddonRegistry,
        http: Optional[AddonHttpClient] = None,
        page_size: Optional[int] = None,
        cinemeta_urls: Optional[Sequence[str]] = None,
    ):
        self.registry = registry
        self.http = http or AddonHttpClient()
        self.page_size = settings.CATALOG_PAGE_SIZE if page_size is None else page_size
        self.cinemeta_urls = list(settings.CINEMETA_URLS if cinemeta_urls is None else cinemeta_urls)

    def catalog_base_url(self, manifest: Manifest) -> str:
        if manifest.id == CINEMETA_ID:
            return self.cinemeta_urls[0]
        if not manifest.url:
            raise AddonRequestError(manifest.id, reason="addon URL is missing")
        return addon_base_url(manifest.url)

    async def get_catalog(
        self,
        manifest: Manifest,
        content_type: str,
        catalog_id: str,
        page: int = 1,
        filters: Sequence[CatalogFilter] = ()
    ) -> List[Meta]:
        """
        Fetch one page of an addon catalog

        Args:
            manifest: Addon serving the catalog
            content_type: Catalog type
            catalog_id: Catalog id
            page: 1-based page number
            filters: (name, value) pairs such as ("genre", "Action"); falsy values are skipped

        Returns:
            Catalog items, empty when the addon returned none

        Raises:
            AddonRequestError: request failed after retries
        """
        url = f"{self.catalog_base_url(manifest)}/catalog/{content_type}/{catalog_id}.json"
        params: Dict[str, Any] = {"skip": (max(page, 1) - 1) * self.page_size}
        for name, value in filters:
            if value:
                params[name] = value

        data = await self.http.get_json(url, params=params)
        return _parse_metas(data)

    async def get_all_catalogs(self) -> Dict[str, List[Meta]]:
        """First catalog of every addon, fetched concurrently; failures are skipped"""
        addons = [addon for addon in await self.registry.list() if addon.catalogs]

        async def fetch_first(addon: Manifest) -> List[Meta]:
            catalog = addon.catalogs[0]
            try:
                return await self.get_catalog(addon, catalog.type, catalog.id)
            except Exception as e:
                logger.warning(f"Failed to fetch catalog from {addon.name or addon.id}: {e}")
                return []

        results = await asyncio.gather(*(fetch_first(addon) for addon in addons))
        return {addon.id: items for addon, items in zip(addons, results) if items}

    async def _fetch_meta(self, base_url: str, content_type: str, content_id: str) -> Optional[MetaDetails]:
        data = await self.http.get_json(f"{base_url}/meta/{content_type}/{content_id}.json")
        meta = data.get("meta") if isinstance(data, dict) else None
        if not meta:
            return None
        return MetaDetails.model_validate(meta)

    async def get_meta_details(self, content_type: str, content_id: str) -> Optional[MetaDetails]:
        """
        Meta details from Cinemeta, falling back to other meta-capable addons

        Returns:
            First meta found, or None
        """
        for base_url in self.cinemeta_urls:
            try:
                meta = await self._fetch_meta(base_url, content_type, content_id)
                if meta:
                    return meta
            except Exception as e:
                logger.warning(f"Failed to fetch meta from {base_url}: {e}")

        for addon in await self.registry.list_capable("meta", content_type):
            if addon.id == CINEMETA_ID or not addon.url:
                continue
            try:
                meta = await self._fetch_meta(addon_base_url(addon.url), content_type, content_id)
                if meta:
                    return meta
            except Exception as e:
                logger.warning(f"Failed to fetch meta from {addon.name or addon.id}: {e}")

        logger.info(f"No metadata found for {content_type} {content_id}")
        return None
