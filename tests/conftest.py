"""
Test configuration and fixtures
"""
import asyncio
import pytest
from typing import Any, Dict, List, Optional
from fakeredis import aioredis as fakeredis
from addonhub.core.exceptions import AddonRequestError
from addonhub.models.addon import Manifest
from addonhub.services.storage import KeyValueStore


class FakeAddonHttp:
    """
    Stand-in for AddonHttpClient serving canned JSON by URL

    Route values may be a payload, an exception instance to raise, or a
    (delay_seconds, payload) tuple to simulate a slow addon.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[str] = []
        self.completed: List[str] = []
        self.closed = False

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append(url)
        if url not in self.routes:
            raise AddonRequestError(url, status=404)
        value = self.routes[url]
        if isinstance(value, tuple):
            delay, value = value
            await asyncio.sleep(delay)
        self.completed.append(url)
        if isinstance(value, Exception):
            raise value
        return value

    async def close(self):
        self.closed = True


@pytest.fixture
async def fake_redis():
    """Provide fake Redis client for testing"""
    redis_client = fakeredis.FakeRedis(decode_responses=True)
    yield redis_client
    await redis_client.flushall()
    await redis_client.aclose()


@pytest.fixture
def store(fake_redis):
    """Key-value store backed by fake Redis"""
    return KeyValueStore(client=fake_redis)


@pytest.fixture
def fake_http():
    return FakeAddonHttp()


@pytest.fixture
def cinemeta_manifest_data():
    """Cinemeta-like manifest (catalogs + meta, no streams)"""
    return {
        "id": "com.linvo.cinemeta",
        "name": "Cinemeta",
        "version": "3.0.13",
        "description": "The official addon for movie and series catalogs",
        "types": ["movie", "series"],
        "resources": ["catalog", "meta"],
        "idPrefixes": ["tt"],
        "catalogs": [
            {"type": "movie", "id": "top", "name": "Popular"},
            {"type": "series", "id": "top", "name": "Popular"},
        ],
    }


@pytest.fixture
def torrentio_manifest_data():
    """Torrentio-like manifest (streams only)"""
    return {
        "id": "com.stremio.torrentio.addon",
        "name": "Torrentio",
        "version": "0.0.14",
        "description": "Provides torrent streams",
        "types": ["movie", "series"],
        "resources": [
            {"name": "stream", "types": ["movie", "series"], "idPrefixes": ["tt", "kitsu"]}
        ],
        "catalogs": [],
    }


def make_manifest(
    addon_id: str,
    name: Optional[str] = None,
    url: Optional[str] = None,
    resources: Optional[List[Any]] = None,
    catalogs: Optional[List[dict]] = None,
) -> Manifest:
    """Build an installed manifest for tests"""
    return Manifest.model_validate({
        "id": addon_id,
        "name": name or addon_id.title(),
        "version": "1.0.0",
        "url": url or f"https://{addon_id}.example.com",
        "resources": resources if resources is not None else [
            {"name": "stream", "types": ["movie", "series"]}
        ],
        "catalogs": catalogs or [],
    })


@pytest.fixture
def manifest_factory():
    return make_manifest
