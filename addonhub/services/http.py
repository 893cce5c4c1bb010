"""
Addon HTTP Client
Shared aiohttp session with retry and exponential backoff
"""
import aiohttp
import asyncio
import logging
from typing import Dict, Optional, Any
from addonhub.core.config import settings
from addonhub.core.exceptions import AddonRequestError

logger = logging.getLogger(__name__)

# Client errors that may succeed on a later attempt
RETRYABLE_STATUSES = {408, 425, 429}


class AddonHttpClient:
    """Async JSON client used for every addon request"""

    def __init__(
        self,
        retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.retries = settings.REQUEST_RETRIES if retries is None else retries
        self.base_delay = settings.RETRY_BASE_DELAY if base_delay is None else base_delay
        self.timeout = settings.REQUEST_TIMEOUT if timeout is None else timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self.session

    async def close(self):
        """Close aiohttp session"""
        if self.session and not self.session.closed:
            await self.session.close()

    async def _fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Single GET attempt returning decoded JSON"""
        session = await self.get_session()
        async with session.get(url, params=params) as response:
            if response.status != 200:
                raise AddonRequestError(url, status=response.status)
            # Many addons serve JSON as text/plain
            return await response.json(content_type=None)

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document, retrying transient failures

        Args:
            url: Absolute URL
            params: Optional query parameters

        Returns:
            Decoded JSON body

        Raises:
            AddonRequestError: after the last attempt failed
        """
        last_error: Optional[Exception] = None
        attempts = self.retries + 1

        for attempt in range(attempts):
            try:
                return await self._fetch(url, params)
            except AddonRequestError as e:
                last_error = e
                if e.status is not None and 400 <= e.status < 500 and e.status not in RETRYABLE_STATUSES:
                    logger.debug(f"Not retrying {url}: status {e.status}")
                    raise
            except ValueError as e:
                logger.debug(f"Not retrying {url}: body is not JSON")
                raise AddonRequestError(url, reason=f"invalid JSON: {e}") from e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e

            logger.debug(f"Request failed (attempt {attempt + 1}/{attempts}) for {url}: {last_error!r}")
            if attempt + 1 < attempts:
                await asyncio.sleep(self.base_delay * (2 ** attempt))

        logger.warning(f"Giving up on {url} after {attempts} attempts: {last_error!r}")
        if isinstance(last_error, AddonRequestError):
            raise last_error
        raise AddonRequestError(url, reason=repr(last_error)) from last_error
