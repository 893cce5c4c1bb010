"""
Catalog Preference Store
Per-catalog enable flag and home-feed ordering
"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence
from pydantic import ValidationError
from addonhub.core.config import settings
from addonhub.core.exceptions import StorageError
from addonhub.models.addon import CatalogPreference, EnabledCatalog, Manifest
from addonhub.services.notifier import ChangeNotifier
from addonhub.services.storage import KeyValueStore

logger = logging.getLogger(__name__)


def preference_key(addon_id: str, content_type: str, catalog_id: str) -> str:
    """Composite key for a catalog preference row"""
    return f"{addon_id}:{content_type}:{catalog_id}"


class CatalogPreferenceStore:
    """Owns catalog preference rows keyed by addon, type and catalog id"""

    def __init__(
        self,
        store: KeyValueStore,
        notifier: Optional[ChangeNotifier] = None,
        storage_key: Optional[str] = None,
        order_gap: Optional[int] = None,
        default_order: Optional[int] = None,
    ):
        self.store = store
        self.notifier = notifier or ChangeNotifier()
        self.storage_key = storage_key or settings.STORAGE_KEY_CATALOG_PREFS
        self.order_gap = settings.CATALOG_ORDER_GAP if order_gap is None else order_gap
        self.default_order = settings.CATALOG_DEFAULT_ORDER if default_order is None else default_order

        self._preferences: Dict[str, CatalogPreference] = {}
        self._init_lock = asyncio.Lock()
        self._ready = asyncio.Event()

    def _default(self) -> CatalogPreference:
        return CatalogPreference(enabled=True, order=self.default_order)

    async def initialize(self):
        """Load persisted preferences once"""
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
            logger.error(f"Failed to load catalog preferences: {e}")
            stored = None

        preferences: Dict[str, CatalogPreference] = {}
        if isinstance(stored, dict):
            for key, value in stored.items():
                try:
                    preferences[key] = CatalogPreference.model_validate(value)
                except ValidationError:
                    logger.warning(f"Ignoring unreadable catalog preference {key}")
        self._preferences = preferences

    async def _save(self):
        payload = {key: pref.model_dump() for key, pref in self._preferences.items()}
        if not await self.store.set_json(self.storage_key, payload):
            logger.warning("Catalog preferences were not persisted; changes may be lost on restart")

    async def get(self, addon_id: str, content_type: str, catalog_id: str) -> CatalogPreference:
        """Stored preference, or the default for catalogs never seen"""
        await self.initialize()
        pref = self._preferences.get(preference_key(addon_id, content_type, catalog_id))
        return pref.model_copy() if pref else self._default()

    async def set(
        self,
        addon_id: str,
        content_type: str,
        catalog_id: str,
        enabled: bool,
        order: Optional[int] = None
    ) -> CatalogPreference:
        """
        Upsert a catalog preference

        Args:
            addon_id: Addon owning the catalog
            content_type: Catalog content type
            catalog_id: Catalog id within the addon
            enabled: Whether the catalog shows on the home feed
            order: New sort position; keeps the current one when omitted

        Returns:
            The stored preference
        """
        await self.initialize()

        key = preference_key(addon_id, content_type, catalog_id)
        current = self._preferences.get(key) or self._default()
        pref = CatalogPreference(
            enabled=enabled,
            order=current.order if order is None else order,
        )
        self._preferences[key] = pref
        await self._save()

        self.notifier.catalog_prefs_changed.publish()
        return pref.model_copy()

    async def set_order(
        self,
        addon_id: str,
        content_type: str,
        catalog_id: str,
        order: int
    ) -> CatalogPreference:
        """Move a catalog without touching its enabled flag"""
        current = await self.get(addon_id, content_type, catalog_id)
        return await self.set(addon_id, content_type, catalog_id, current.enabled, order)

    async def reconcile(self, manifests: Sequence[Manifest]) -> bool:
        """
        Create default rows for catalogs that have none yet

        New catalogs are appended after the current highest order, spaced by
        the order gap. Existing rows, including orphans, are left alone.

        Returns:
            True if any row was added
        """
        await self.initialize()

        running_max = max([0, *(pref.order for pref in self._preferences.values())])
        added = 0

        for manifest in manifests:
            for catalog in manifest.catalogs:
                key = preference_key(manifest.id, catalog.type, catalog.id)
                if key in self._preferences:
                    continue
                running_max += self.order_gap
                self._preferences[key] = CatalogPreference(enabled=True, order=running_max)
                added += 1

        if added:
            await self._save()
            logger.debug(f"Added {added} catalog preferences")
        return bool(added)

    async def list_enabled_ordered(self, manifests: Sequence[Manifest]) -> List[EnabledCatalog]:
        """
        Enabled catalogs of the given manifests, sorted by preference order

        Catalogs without a stored row are skipped until reconcile() adds one.
        Equal orders keep manifest/catalog declaration order.
        """
        await self.initialize()

        joined = []
        for manifest in manifests:
            for catalog in manifest.catalogs:
                pref = self._preferences.get(preference_key(manifest.id, catalog.type, catalog.id))
                if pref is None or not pref.enabled:
                    continue
                joined.append((pref.order, EnabledCatalog(addonId=manifest.id, addon=manifest, catalog=catalog)))

        # sort() is stable, ties keep join order
        joined.sort(key=lambda entry: entry[0])
        return [entry for _, entry in joined]

    async def snapshot(self) -> Dict[str, CatalogPreference]:
        """Copy of every stored preference, orphans included"""
        await self.initialize()
        return {key: pref.model_copy() for key, pref in self._preferences.items()}
