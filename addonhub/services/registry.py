"""
Addon Registry
Installed addons, persisted in installation order
"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence
from pydantic import ValidationError
from addonhub.core.config import settings
from addonhub.core.exceptions import InvalidManifestError, StorageError
from addonhub.models.addon import AddonCapabilities, Manifest
from addonhub.services.manifest import ManifestFetcher
from addonhub.services.notifier import ChangeNotifier
from addonhub.services.storage import KeyValueStore

logger = logging.getLogger(__name__)


def filter_capable(
    manifests: Sequence[Manifest],
    resource_name: str,
    content_type: str,
    content_id: Optional[str] = None
) -> List[Manifest]:
    """
    Keep manifests declaring a resource for the given content type

    Args:
        manifests: Manifests in installation order
        resource_name: "catalog", "meta" or "stream"
        content_type: e.g. "movie" or "series"
        content_id: When given, idPrefixes declared by the resource must match it

    Returns:
        Matching manifests, order preserved
    """
    return [
        manifest for manifest in manifests
        if manifest.supports(resource_name, content_type, content_id)
    ]


class AddonRegistry:
    """Owns the set of installed addon manifests"""

    def __init__(
        self,
        store: KeyValueStore,
        fetcher: Optional[ManifestFetcher] = None,
        notifier: Optional[ChangeNotifier] = None,
        default_addons: Optional[Sequence[str]] = None,
        storage_key: Optional[str] = None,
    ):
        self.store = store
        self.fetcher = fetcher or ManifestFetcher()
        self.notifier = notifier or ChangeNotifier()
        self.default_addons = list(
            settings.DEFAULT_ADDONS if default_addons is None else default_addons
        )
        self.storage_key = storage_key or settings.STORAGE_KEY_ADDONS

        self._addons: Dict[str, Manifest] = {}
        self._init_lock = asyncio.Lock()
        self._ready = asyncio.Event()

    @property
    def initialized(self) -> bool:
        return self._ready.is_set()

    async def initialize(self):
        """Load persisted addons once; concurrent callers wait for the same load"""
        if self._ready.is_set():
            return
        async with self._init_lock:
            if self._ready.is_set():
                return
            await self._load()
            self._ready.set()

    async def _load(self):
        try:
            stored = await self.store.get_json(self.storage_key)
        except StorageError as e:
            logger.error(f"Failed to load installed addons: {e}")
            stored = None

        addons: Dict[str, Manifest] = {}
        for item in stored if isinstance(stored, list) else []:
            try:
                manifest = Manifest.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping unreadable stored addon: {e.error_count()} errors")
                continue
            if manifest.id:
                addons[manifest.id] = manifest
        self._addons = addons

        if not self._addons:
            await self._install_defaults()

        logger.info(f"Addon registry ready with {len(self._addons)} addons")

    async def _install_defaults(self):
        """Best-effort install of the bootstrap addons"""
        if not self.default_addons:
            return

        results = await asyncio.gather(
            *(self.fetcher.fetch(url) for url in self.default_addons),
            return_exceptions=True,
        )
        for url, result in zip(self.default_addons, results):
            if isinstance(result, Exception):
                logger.warning(f"Skipping default addon {url}: {result}")
                continue
            if result.id:
                self._addons[result.id] = result

        if self._addons:
            await self._save()

    async def _save(self):
        payload = [
            manifest.model_dump(mode="json", exclude_none=True)
            for manifest in self._addons.values()
        ]
        if not await self.store.set_json(self.storage_key, payload):
            logger.warning("Installed addons were not persisted; changes may be lost on restart")

    async def install(self, url: str) -> Manifest:
        """
        Install (or re-install) the addon behind a URL

        Args:
            url: Addon install URL

        Returns:
            The stored manifest

        Raises:
            ManifestFetchError: manifest unreachable or unparseable
            InvalidManifestError: manifest has no usable id
        """
        await self.initialize()

        manifest = await self.fetcher.fetch(url)
        if not manifest or not manifest.id:
            raise InvalidManifestError(f"Invalid addon manifest from {url}")

        replaced = manifest.id in self._addons
        self._addons[manifest.id] = manifest
        await self._save()
        logger.info(f"{'Reinstalled' if replaced else 'Installed'} addon {manifest.id} from {url}")

        self.notifier.addons_changed.publish()
        return manifest

    async def remove(self, addon_id: str) -> bool:
        """
        Remove an installed addon

        Returns:
            True if it was installed, False if nothing changed
        """
        await self.initialize()

        if addon_id not in self._addons:
            return False

        del self._addons[addon_id]
        await self._save()
        logger.info(f"Removed addon {addon_id}")

        self.notifier.addons_changed.publish()
        return True

    async def list(self) -> List[Manifest]:
        """All installed manifests in installation order"""
        await self.initialize()
        return [*self._addons.values()]

    async def get(self, addon_id: str) -> Optional[Manifest]:
        await self.initialize()
        return self._addons.get(addon_id)

    async def list_capable(
        self,
        resource_name: str,
        content_type: str,
        content_id: Optional[str] = None
    ) -> List[Manifest]:
        """Installed manifests that can serve a resource for a content type"""
        return filter_capable(await self.list(), resource_name, content_type, content_id)

    async def capabilities(self) -> List[AddonCapabilities]:
        """Summary of every installed addon's catalogs and resources"""
        return [
            AddonCapabilities(
                id=manifest.id,
                name=manifest.name,
                version=manifest.version,
                catalogs=manifest.catalogs,
                resources=manifest.resources,
                types=manifest.types,
            )
            for manifest in await self.list()
        ]
