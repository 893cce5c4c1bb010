"""
Tests for the addon registry
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock
from addonhub.core.exceptions import InvalidManifestError, ManifestFetchError, StorageError
from addonhub.services.manifest import ManifestFetcher
from addonhub.services.notifier import ChangeNotifier
from addonhub.services.registry import AddonRegistry, filter_capable

CINEMETA_URL = "https://v3-cinemeta.strem.io/manifest.json"
TORRENTIO_URL = "https://torrentio.strem.fun/manifest.json"


@pytest.fixture
def routes(fake_http, cinemeta_manifest_data, torrentio_manifest_data):
    fake_http.routes[CINEMETA_URL] = cinemeta_manifest_data
    fake_http.routes[TORRENTIO_URL] = torrentio_manifest_data
    return fake_http.routes


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def registry(store, fake_http, notifier, routes):
    """Registry without bootstrap addons"""
    return AddonRegistry(store, fetcher=ManifestFetcher(fake_http), notifier=notifier, default_addons=[])


@pytest.mark.asyncio
async def test_install_adds_and_persists(registry, store):
    manifest = await registry.install(TORRENTIO_URL)

    assert manifest.id == "com.stremio.torrentio.addon"
    assert [m.id for m in await registry.list()] == ["com.stremio.torrentio.addon"]

    stored = await store.get_json("stremio-addons")
    assert isinstance(stored, list)
    assert stored[0]["id"] == "com.stremio.torrentio.addon"
    assert stored[0]["url"] == "https://torrentio.strem.fun"


@pytest.mark.asyncio
async def test_install_same_url_twice_is_idempotent(registry):
    await registry.install(CINEMETA_URL)
    await registry.install(TORRENTIO_URL)
    await registry.install(CINEMETA_URL)

    ids = [m.id for m in await registry.list()]
    assert ids == ["com.linvo.cinemeta", "com.stremio.torrentio.addon"]


@pytest.mark.asyncio
async def test_reinstall_replaces_manifest(registry, routes, cinemeta_manifest_data):
    await registry.install(CINEMETA_URL)
    routes[CINEMETA_URL] = {**cinemeta_manifest_data, "version": "4.0.0"}

    await registry.install(CINEMETA_URL)

    manifests = await registry.list()
    assert len(manifests) == 1
    assert manifests[0].version == "4.0.0"


@pytest.mark.asyncio
async def test_install_notifies_addon_listeners_only(registry, notifier):
    addon_events = []
    pref_events = []
    notifier.on_addons_changed(lambda: addon_events.append(1))
    notifier.on_catalog_prefs_changed(lambda: pref_events.append(1))

    await registry.install(TORRENTIO_URL)

    assert addon_events == [1]
    assert pref_events == []


@pytest.mark.asyncio
async def test_install_failure_writes_nothing(registry, store, notifier):
    events = []
    notifier.on_addons_changed(lambda: events.append(1))

    with pytest.raises(ManifestFetchError):
        await registry.install("https://unknown.example.com")

    assert await registry.list() == []
    assert await store.get_json("stremio-addons") is None
    assert events == []


@pytest.mark.asyncio
async def test_install_empty_id_is_invalid(store, manifest_factory):
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=manifest_factory(""))
    registry = AddonRegistry(store, fetcher=fetcher, default_addons=[])

    with pytest.raises(InvalidManifestError):
        await registry.install("https://empty.example.com")
    assert await registry.list() == []


@pytest.mark.asyncio
async def test_remove(registry, notifier):
    await registry.install(CINEMETA_URL)
    events = []
    notifier.on_addons_changed(lambda: events.append(1))

    assert await registry.remove("com.linvo.cinemeta") is True
    assert await registry.list() == []
    assert events == [1]


@pytest.mark.asyncio
async def test_remove_missing_is_noop(registry, notifier):
    await registry.install(CINEMETA_URL)
    events = []
    notifier.on_addons_changed(lambda: events.append(1))

    assert await registry.remove("does.not.exist") is False
    assert len(await registry.list()) == 1
    assert events == []


@pytest.mark.asyncio
async def test_state_survives_restart(registry, store, fake_http):
    await registry.install(TORRENTIO_URL)
    await registry.install(CINEMETA_URL)

    restarted = AddonRegistry(store, fetcher=ManifestFetcher(fake_http), default_addons=[CINEMETA_URL])
    manifests = await restarted.list()

    assert [m.id for m in manifests] == ["com.stremio.torrentio.addon", "com.linvo.cinemeta"]
    assert manifests[0].supports("stream", "movie")


@pytest.mark.asyncio
async def test_bootstrap_installs_defaults_best_effort(store, fake_http, routes):
    registry = AddonRegistry(
        store,
        fetcher=ManifestFetcher(fake_http),
        default_addons=[CINEMETA_URL, "https://gone.example.com/manifest.json", TORRENTIO_URL],
    )

    manifests = await registry.list()

    assert [m.id for m in manifests] == ["com.linvo.cinemeta", "com.stremio.torrentio.addon"]
    assert len(await store.get_json("stremio-addons")) == 2


@pytest.mark.asyncio
async def test_bootstrap_on_storage_read_failure(fake_http, routes):
    store = MagicMock()
    store.get_json = AsyncMock(side_effect=StorageError("down"))
    store.set_json = AsyncMock(return_value=False)
    registry = AddonRegistry(store, fetcher=ManifestFetcher(fake_http), default_addons=[CINEMETA_URL])

    manifests = await registry.list()

    assert [m.id for m in manifests] == ["com.linvo.cinemeta"]


@pytest.mark.asyncio
async def test_write_failure_keeps_memory_state(fake_http, routes):
    store = MagicMock()
    store.get_json = AsyncMock(return_value=None)
    store.set_json = AsyncMock(return_value=False)
    registry = AddonRegistry(store, fetcher=ManifestFetcher(fake_http), default_addons=[])

    await registry.install(TORRENTIO_URL)

    assert [m.id for m in await registry.list()] == ["com.stremio.torrentio.addon"]


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_initialization(store, fake_http, routes):
    fake_http.routes[CINEMETA_URL] = (0.05, fake_http.routes[CINEMETA_URL])
    registry = AddonRegistry(store, fetcher=ManifestFetcher(fake_http), default_addons=[CINEMETA_URL])

    results = await asyncio.gather(registry.list(), registry.list(), registry.list_capable("meta", "movie"))

    assert all(len(result) == 1 for result in results)
    assert fake_http.calls.count(CINEMETA_URL) == 1
    assert registry.initialized


@pytest.mark.asyncio
async def test_list_capable(registry):
    await registry.install(CINEMETA_URL)
    await registry.install(TORRENTIO_URL)

    assert [m.id for m in await registry.list_capable("stream", "movie")] == ["com.stremio.torrentio.addon"]
    assert [m.id for m in await registry.list_capable("meta", "series")] == ["com.linvo.cinemeta"]
    assert await registry.list_capable("stream", "channel") == []


def test_filter_capable_id_prefixes(manifest_factory):
    imdb_only = manifest_factory("imdb", resources=[{"name": "stream", "types": ["movie"], "idPrefixes": ["tt"]}])
    anything = manifest_factory("any", resources=[{"name": "stream", "types": ["movie"]}])

    assert filter_capable([imdb_only, anything], "stream", "movie", "tt0111161") == [imdb_only, anything]
    assert filter_capable([imdb_only, anything], "stream", "movie", "tmdb:278") == [anything]


@pytest.mark.asyncio
async def test_capabilities(registry):
    await registry.install(CINEMETA_URL)

    capabilities = await registry.capabilities()

    assert capabilities[0].id == "com.linvo.cinemeta"
    assert capabilities[0].types == ["movie", "series"]
    assert len(capabilities[0].catalogs) == 2
