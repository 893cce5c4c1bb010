"""
Manifest Fetcher
Retrieves and validates addon manifests
"""
import logging
import re
from typing import Optional
from pydantic import ValidationError
from addonhub.core.exceptions import AddonRequestError, ManifestFetchError
from addonhub.models.addon import Manifest
from addonhub.services.http import AddonHttpClient

logger = logging.getLogger(__name__)

MANIFEST_SUFFIX = "manifest.json"


def normalize_manifest_url(url: str) -> str:
    """
    Make sure an install URL points at a manifest.json endpoint

    Args:
        url: URL as typed or pasted by the user

    Returns:
        Absolute https URL ending in manifest.json
    """
    url = url.strip()
    if url.startswith("stremio://"):
        url = "https://" + url[len("stremio://"):]
    elif not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    if url.endswith(MANIFEST_SUFFIX):
        return url
    return f"{url.rstrip('/')}/{MANIFEST_SUFFIX}"


def addon_base_url(url: str) -> str:
    """Strip manifest.json and the trailing slash from an addon URL"""
    base = re.sub(r"manifest\.json$", "", url).rstrip("/")
    if not base.startswith("http"):
        base = f"https://{base}"
    return base


def format_addon_id(url: str) -> str:
    """Derive a stable addon id from its URL"""
    return re.sub(r"[^a-zA-Z0-9]", "-", url).lower()


class ManifestFetcher:
    """Fetches an addon's self-description"""

    def __init__(self, http: Optional[AddonHttpClient] = None):
        self.http = http or AddonHttpClient()

    async def fetch(self, url: str) -> Manifest:
        """
        Fetch and parse the manifest behind an install URL

        Args:
            url: Install URL (with or without manifest.json)

        Returns:
            Parsed manifest with url, originalUrl and id filled in

        Raises:
            ManifestFetchError: unreachable after retries or not a manifest
        """
        manifest_url = normalize_manifest_url(url)

        try:
            data = await self.http.get_json(manifest_url)
        except AddonRequestError as e:
            logger.error(f"Failed to fetch manifest from {manifest_url}: {e}")
            raise ManifestFetchError(url, str(e)) from e

        if not isinstance(data, dict):
            raise ManifestFetchError(url, "response is not a JSON object")

        data = dict(data)
        data["originalUrl"] = url
        data["url"] = addon_base_url(manifest_url)
        if not data.get("id"):
            data["id"] = format_addon_id(manifest_url)

        try:
            manifest = Manifest.model_validate(data)
        except ValidationError as e:
            raise ManifestFetchError(url, f"invalid manifest: {e.error_count()} errors") from e

        logger.debug(f"Fetched manifest {manifest.id} ({manifest.name} {manifest.version})")
        return manifest
