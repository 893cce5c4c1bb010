"""
Tests for manifest fetching and URL normalization
"""
import pytest
from addonhub.core.exceptions import AddonRequestError, ManifestFetchError
from addonhub.services.manifest import (
    ManifestFetcher,
    addon_base_url,
    format_addon_id,
    normalize_manifest_url,
)


def test_normalize_appends_manifest_suffix():
    assert normalize_manifest_url("https://addon.example.com") == "https://addon.example.com/manifest.json"
    assert normalize_manifest_url("https://addon.example.com/") == "https://addon.example.com/manifest.json"


def test_normalize_keeps_manifest_url():
    url = "https://torrentio.strem.fun/manifest.json"
    assert normalize_manifest_url(url) == url


def test_normalize_schemes():
    assert normalize_manifest_url("stremio://addon.example.com/manifest.json") == "https://addon.example.com/manifest.json"
    assert normalize_manifest_url("addon.example.com") == "https://addon.example.com/manifest.json"


def test_addon_base_url_strips_manifest():
    assert addon_base_url("https://addon.example.com/conf/manifest.json") == "https://addon.example.com/conf"
    assert addon_base_url("https://addon.example.com/") == "https://addon.example.com"


def test_format_addon_id_is_deterministic():
    url = "https://My.Addon.example.com/manifest.json"
    assert format_addon_id(url) == "https---my-addon-example-com-manifest-json"
    assert format_addon_id(url) == format_addon_id(url)


@pytest.mark.asyncio
async def test_fetch_manifest(fake_http, torrentio_manifest_data):
    fake_http.routes["https://torrentio.strem.fun/manifest.json"] = torrentio_manifest_data
    fetcher = ManifestFetcher(fake_http)

    manifest = await fetcher.fetch("https://torrentio.strem.fun")

    assert manifest.id == "com.stremio.torrentio.addon"
    assert manifest.name == "Torrentio"
    assert manifest.url == "https://torrentio.strem.fun"
    assert manifest.originalUrl == "https://torrentio.strem.fun"
    assert fake_http.calls == ["https://torrentio.strem.fun/manifest.json"]


@pytest.mark.asyncio
async def test_fetch_expands_short_resources(fake_http, cinemeta_manifest_data):
    fake_http.routes["https://v3-cinemeta.strem.io/manifest.json"] = cinemeta_manifest_data
    fetcher = ManifestFetcher(fake_http)

    manifest = await fetcher.fetch("https://v3-cinemeta.strem.io/manifest.json")

    assert [r.name for r in manifest.resources] == ["catalog", "meta"]
    assert manifest.resources[1].types == ["movie", "series"]
    assert manifest.resources[1].idPrefixes == ["tt"]
    assert manifest.supports("meta", "series")
    assert not manifest.supports("stream", "movie")


@pytest.mark.asyncio
async def test_fetch_derives_missing_id(fake_http):
    """Same URL always yields the same derived id"""
    fake_http.routes["https://anon.example.com/manifest.json"] = {"name": "Anonymous", "version": "1.0.0"}
    fetcher = ManifestFetcher(fake_http)

    first = await fetcher.fetch("https://anon.example.com")
    second = await fetcher.fetch("https://anon.example.com/manifest.json")

    assert first.id == "https---anon-example-com-manifest-json"
    assert first.id == second.id


@pytest.mark.asyncio
async def test_fetch_unreachable_raises(fake_http):
    fake_http.routes["https://down.example.com/manifest.json"] = AddonRequestError(
        "https://down.example.com/manifest.json", reason="timeout"
    )
    fetcher = ManifestFetcher(fake_http)

    with pytest.raises(ManifestFetchError) as exc_info:
        await fetcher.fetch("https://down.example.com")

    assert exc_info.value.url == "https://down.example.com"


@pytest.mark.asyncio
async def test_fetch_non_object_raises(fake_http):
    fake_http.routes["https://odd.example.com/manifest.json"] = ["not", "a", "manifest"]
    fetcher = ManifestFetcher(fake_http)

    with pytest.raises(ManifestFetchError):
        await fetcher.fetch("https://odd.example.com")


@pytest.mark.asyncio
async def test_fetch_invalid_fields_raise(fake_http):
    fake_http.routes["https://bad.example.com/manifest.json"] = {
        "id": "bad",
        "catalogs": "everything",
    }
    fetcher = ManifestFetcher(fake_http)

    with pytest.raises(ManifestFetchError):
        await fetcher.fetch("https://bad.example.com")
