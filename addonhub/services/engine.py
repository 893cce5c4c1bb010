"""
Addon Engine
Wires registry, preferences, stream aggregation and notifications together
"""
import logging
from typing import List, Optional
from addonhub.models.addon import EnabledCatalog, Manifest
from addonhub.services.catalog import CatalogClient
from addonhub.services.http import AddonHttpClient
from addonhub.services.manifest import ManifestFetcher
from addonhub.services.notifier import ChangeNotifier
from addonhub.services.preferences import CatalogPreferenceStore
from addonhub.services.registry import AddonRegistry
from addonhub.services.storage import KeyValueStore
from addonhub.services.streams import StreamAggregator

logger = logging.getLogger(__name__)


class AddonEngine:
    """
    Explicitly constructed owner of all addon state

    Every component shares one HTTP client, one store and one notifier.
    Call start() before serving and close() on shutdown.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        http: Optional[AddonHttpClient] = None,
        notifier: Optional[ChangeNotifier] = None,
        default_addons: Optional[List[str]] = None,
    ):
        self.store = store or KeyValueStore()
        self.http = http or AddonHttpClient()
        self.notifier = notifier or ChangeNotifier()

        self.fetcher = ManifestFetcher(self.http)
        self.registry = AddonRegistry(
            self.store,
            fetcher=self.fetcher,
            notifier=self.notifier,
            default_addons=default_addons,
        )
        self.preferences = CatalogPreferenceStore(self.store, notifier=self.notifier)
        self.streams = StreamAggregator(self.registry, self.http)
        self.catalogs = CatalogClient(self.registry, self.http)

    async def start(self):
        """Load persisted state and make sure every catalog has a preference row"""
        await self.registry.initialize()
        await self.preferences.initialize()
        await self.preferences.reconcile(await self.registry.list())
        logger.info("Addon engine started")

    async def install_addon(self, url: str) -> Manifest:
        """Install an addon and register preferences for its catalogs"""
        manifest = await self.registry.install(url)
        await self.preferences.reconcile(await self.registry.list())
        return manifest

    async def remove_addon(self, addon_id: str) -> bool:
        # Preference rows of removed addons stay as ignored orphans
        return await self.registry.remove(addon_id)

    async def enabled_catalogs(self) -> List[EnabledCatalog]:
        """Home-feed catalogs in user order"""
        manifests = await self.registry.list()
        await self.preferences.reconcile(manifests)
        return await self.preferences.list_enabled_ordered(manifests)

    async def close(self):
        await self.http.close()
        await self.store.close()
        logger.info("Addon engine stopped")
