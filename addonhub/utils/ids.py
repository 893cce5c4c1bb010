"""
Content Identifier Helpers
Builds the alternative id encodings addons expect for the same title
"""
import re
from typing import List, Optional, Tuple

IMDB_ID_RE = re.compile(r"tt\d+")
TYPE_PREFIXES = ("movie:", "series:")


def extract_imdb_id(value: Optional[str]) -> Optional[str]:
    """Pull the raw IMDb id (tt1234567) out of any id encoding"""
    if not value:
        return None
    match = IMDB_ID_RE.search(value)
    return match.group(0) if match else None


def split_type_prefix(content_type: str, content_id: str) -> Tuple[str, str]:
    """
    Content type to query for an id candidate

    Candidates carrying a "movie:" or "series:" prefix are queried under that
    type; the id itself is sent unchanged.
    """
    for prefix in TYPE_PREFIXES:
        if content_id.startswith(prefix):
            return prefix[:-1], content_id
    return content_type, content_id


def build_stream_id_candidates(
    content_type: str,
    tmdb_id: Optional[str] = None,
    imdb_id: Optional[str] = None,
    season: Optional[int] = None,
    episode: Optional[int] = None,
    episode_imdb_id: Optional[str] = None,
) -> List[str]:
    """
    Identifier candidates in priority order

    Args:
        content_type: "movie" or "series"
        tmdb_id: TMDB id, with or without the "tmdb:" prefix
        imdb_id: Any string containing the IMDb id
        season: Season number (series only)
        episode: Episode number (series only)
        episode_imdb_id: IMDb id of the specific episode, when known

    Returns:
        Distinct candidates, most specific first
    """
    candidates: List[str] = []
    has_episode = content_type == "series" and season is not None and episode is not None

    if has_episode and episode_imdb_id:
        candidates.append(episode_imdb_id)

    if tmdb_id:
        tmdb = str(tmdb_id)
        if not tmdb.startswith("tmdb:"):
            tmdb = f"tmdb:{tmdb}"
        if has_episode:
            tmdb = f"{tmdb}:{season}:{episode}"
        candidates.append(tmdb)

    raw_imdb = extract_imdb_id(imdb_id)
    if raw_imdb:
        if content_type == "series":
            if has_episode:
                candidates.append(f"series:{raw_imdb}:{season}:{episode}")
                candidates.append(f"{raw_imdb}:{season}:{episode}")
            else:
                candidates.append(f"series:{raw_imdb}")
        else:
            candidates.append(f"movie:{raw_imdb}")
            candidates.append(raw_imdb)

    return list(dict.fromkeys(candidates))
