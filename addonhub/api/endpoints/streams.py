"""
Stream Endpoints
Resolve playable streams across addons
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field
from addonhub.api.dependencies import get_engine
from addonhub.models.addon import StreamResponse
from addonhub.services.engine import AddonEngine
from addonhub.utils.streams import describe_stream

router = APIRouter(prefix="/streams", tags=["streams"])


class ResolveRequest(BaseModel):
    """Identifier candidates, or the ids known for a title"""
    ids: List[str] = Field(default_factory=list)
    tmdb_id: Optional[str] = None
    imdb_id: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    episode_imdb_id: Optional[str] = None


def serialize_responses(responses: List[StreamResponse]) -> List[dict]:
    payload = []
    for response in responses:
        data = response.model_dump(mode="json", exclude_none=True)
        for stream, item in zip(response.streams, data["streams"]):
            item["labels"] = describe_stream(stream).model_dump(exclude_none=True)
        payload.append(data)
    return payload


@router.get("/{type}/{id}")
async def streams_for_id(
    type: str = Path(..., description="Content type: movie or series"),
    id: str = Path(..., description="Content id"),
    engine: AddonEngine = Depends(get_engine)
):
    """Streams for a single identifier"""
    responses = await engine.streams.resolve(type, [id])
    return {"results": serialize_responses(responses)}


@router.post("/{type}")
async def resolve_streams(
    request: ResolveRequest,
    type: str = Path(..., description="Content type: movie or series"),
    engine: AddonEngine = Depends(get_engine)
):
    """
    Streams for a title, trying identifier candidates in order

    Uses the explicit ids when given, otherwise builds them from tmdb/imdb ids.
    """
    if request.ids:
        responses = await engine.streams.resolve(type, request.ids)
    else:
        responses = await engine.streams.resolve_for_title(
            type,
            tmdb_id=request.tmdb_id,
            imdb_id=request.imdb_id,
            season=request.season,
            episode=request.episode,
            episode_imdb_id=request.episode_imdb_id,
        )
    return {"results": serialize_responses(responses)}
