"""
Stream Aggregator
Resolves playable streams by querying every stream-capable addon
"""
import asyncio
import logging
from typing import Callable, List, Optional, Sequence
from urllib.parse import quote
from addonhub.models.addon import Manifest, StreamResponse
from addonhub.services.http import AddonHttpClient
from addonhub.services.manifest import addon_base_url
from addonhub.services.registry import AddonRegistry
from addonhub.utils.ids import build_stream_id_candidates, split_type_prefix
from addonhub.utils.streams import normalize_streams

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[StreamResponse], None]


def stream_url(addon: Manifest, content_type: str, content_id: str) -> str:
    """Stream resource URL of an addon"""
    return f"{addon_base_url(addon.url or '')}/stream/{content_type}/{quote(content_id, safe=':')}.json"


class StreamAggregator:
    """Queries stream-capable addons concurrently and merges their answers"""

    def __init__(self, registry: AddonRegistry, http: Optional[AddonHttpClient] = None):
        self.registry = registry
        self.http = http or AddonHttpClient()

    async def _fetch_addon_streams(
        self,
        addon: Manifest,
        content_type: str,
        content_id: str,
        on_response: Optional[ResponseCallback] = None
    ) -> Optional[StreamResponse]:
        """
        Streams from a single addon

        Returns:
            StreamResponse with at least one stream, or None on failure/no streams
        """
        if not addon.url:
            logger.warning(f"Addon {addon.id} has no URL")
            return None

        url = stream_url(addon, content_type, content_id)
        try:
            data = await self.http.get_json(url)
            if not isinstance(data, dict) or not isinstance(data.get("streams"), list):
                logger.warning(f"Addon {addon.id} returned no stream list for {content_type}/{content_id}")
                return None
            streams = normalize_streams(data["streams"], addon)
        except Exception as e:
            logger.warning(f"Failed to get streams from {addon.name or addon.id}: {e}")
            return None

        logger.debug(f"Addon {addon.id}: {len(streams)}/{len(data['streams'])} streams kept for {content_id}")
        if not streams:
            return None

        response = StreamResponse(addon=addon.id, addonName=addon.name, streams=streams)
        if on_response is not None:
            try:
                on_response(response)
            except Exception as e:
                logger.error(f"Stream callback failed for {addon.id}: {e}", exc_info=True)
        return response

    async def resolve_candidate(
        self,
        content_type: str,
        content_id: str,
        on_response: Optional[ResponseCallback] = None
    ) -> List[StreamResponse]:
        """
        Query all capable addons in parallel for one identifier

        Returns:
            One StreamResponse per addon that produced streams, in installation order
        """
        query_type, query_id = split_type_prefix(content_type, content_id)
        addons = await self.registry.list_capable("stream", query_type)
        if not addons:
            logger.info(f"No addons provide {query_type} streams")
            return []

        # gather() keeps input order, which is installation order
        results = await asyncio.gather(
            *(self._fetch_addon_streams(addon, query_type, query_id, on_response) for addon in addons)
        )
        return [response for response in results if response is not None]

    async def resolve(
        self,
        content_type: str,
        candidate_ids: Sequence[str],
        on_response: Optional[ResponseCallback] = None
    ) -> List[StreamResponse]:
        """
        Resolve streams, trying identifier candidates in priority order

        Each candidate fans out to every capable addon at once. The first
        candidate that yields any stream wins; later ones are not tried.
        Addon failures are logged and left out, so this never raises.

        Args:
            content_type: "movie" or "series"
            candidate_ids: Alternative encodings of the same content id
            on_response: Called as each addon's streams arrive

        Returns:
            StreamResponse per addon in installation order, or [] if nothing was found
        """
        for content_id in candidate_ids:
            if not content_id:
                continue
            responses = await self.resolve_candidate(content_type, content_id, on_response)
            if any(response.streams for response in responses):
                logger.info(
                    f"Found streams from {len(responses)} addons for {content_type} {content_id}"
                )
                return responses
            logger.debug(f"No streams for {content_type} {content_id}, trying next id")

        logger.info(f"No streams found for {content_type} {list(candidate_ids)}")
        return []

    async def resolve_for_title(
        self,
        content_type: str,
        tmdb_id: Optional[str] = None,
        imdb_id: Optional[str] = None,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        episode_imdb_id: Optional[str] = None,
        on_response: Optional[ResponseCallback] = None
    ) -> List[StreamResponse]:
        """Resolve streams from whatever ids are known for a title"""
        candidates = build_stream_id_candidates(
            content_type,
            tmdb_id=tmdb_id,
            imdb_id=imdb_id,
            season=season,
            episode=episode,
            episode_imdb_id=episode_imdb_id,
        )
        return await self.resolve(content_type, candidates, on_response)
