"""
Stream Utilities
Normalization of raw addon streams and title heuristics
"""
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from pydantic import BaseModel, ValidationError
from addonhub.models.addon import Manifest, Stream

PUBLIC_TRACKERS = [
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://9.rarbg.com:2810/announce",
    "udp://tracker.openbittorrent.com:6969/announce",
    "udp://tracker.torrent.eu.org:451/announce",
    "udp://open.stealth.si:80/announce",
    "udp://tracker.leechers-paradise.org:6969/announce",
    "udp://tracker.coppersurfer.tk:6969/announce",
    "udp://tracker.internetwarriors.net:1337/announce",
]

# Same escaping rules as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"

_INFO_HASH_RE = re.compile(r"btih:([a-zA-Z0-9]+)")
_QUALITY_RE = re.compile(r"(\d{3,4})p", re.IGNORECASE)
_UHD_RE = re.compile(r"\b(4k|uhd)\b", re.IGNORECASE)
_SEEDS_RE = re.compile(r"(?:(\d+)\s*seeds?\b|👤\s*(\d+))", re.IGNORECASE)
_SIZE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(TB|GB|MB|KB)\b", re.IGNORECASE)
_LANGUAGE_RE = re.compile(
    r"\b(english|spanish|french|german|italian|russian|korean|japanese|chinese|hindi)\b",
    re.IGNORECASE,
)
_SOURCE_RE = re.compile(r"\b(web-?dl|web-?rip|blu-?ray|bdrip|brrip|remux|hdtv|dvdrip|hdrip|cam|ts)\b", re.IGNORECASE)


def _text(value: Any) -> Optional[str]:
    """Non-empty string fields only; addons sometimes send numbers or lists"""
    return value if isinstance(value, str) and value else None


def is_direct_url(url: Any) -> bool:
    """True for http(s) URLs the player can open directly"""
    return isinstance(url, str) and url.startswith(("http://", "https://"))


def build_magnet_uri(info_hash: str, display_name: Optional[str] = None) -> str:
    """Magnet URI for an info hash, announced on the public trackers"""
    encoded_name = quote(_text(display_name) or "Unknown", safe=_URI_COMPONENT_SAFE)
    trackers = "".join(f"&tr={quote(tracker, safe=_URI_COMPONENT_SAFE)}" for tracker in PUBLIC_TRACKERS)
    return f"magnet:?xt=urn:btih:{info_hash}&dn={encoded_name}{trackers}"


def is_playable(raw: Any) -> bool:
    """Entries need either a URL or a torrent info hash"""
    if not isinstance(raw, dict):
        return False
    return bool(_text(raw.get("url")) or _text(raw.get("infoHash")))


def resolve_stream_url(raw: Dict[str, Any]) -> str:
    url = _text(raw.get("url"))
    if url:
        return url
    info_hash = _text(raw.get("infoHash"))
    if info_hash:
        return build_magnet_uri(info_hash, _text(raw.get("title")) or _text(raw.get("name")))
    return ""


def normalize_stream(raw: Any, addon: Manifest) -> Optional[Stream]:
    """
    Convert one raw addon stream into a Stream record

    Args:
        raw: Stream object as returned by the addon
        addon: Manifest of the addon that returned it

    Returns:
        Normalized stream, or None when the entry cannot be played
    """
    if not is_playable(raw):
        return None

    url = resolve_stream_url(raw)
    is_magnet = url.startswith("magnet:")

    hints = raw.get("behaviorHints")
    behavior_hints: Dict[str, Any] = dict(hints) if isinstance(hints, dict) else {}
    behavior_hints["notWebReady"] = not is_direct_url(raw.get("url"))
    behavior_hints["isMagnetStream"] = is_magnet

    if is_magnet:
        match = _INFO_HASH_RE.search(url)
        torrent_hints = {
            "infoHash": raw.get("infoHash") or (match.group(1) if match else None),
            "fileIdx": raw.get("fileIdx"),
            "magnetUrl": url,
            "type": "torrent",
            "sources": raw.get("sources") or [],
            "seeders": raw.get("seeders"),
            "size": raw.get("size"),
            "title": raw.get("title"),
        }
        behavior_hints.update({key: value for key, value in torrent_hints.items() if value is not None})

    data = {
        **raw,
        "url": url,
        "addonId": addon.id,
        "addonName": addon.name,
        "behaviorHints": behavior_hints,
    }
    if is_magnet and not data.get("infoHash"):
        data["infoHash"] = behavior_hints.get("infoHash")

    try:
        return Stream.model_validate(data)
    except ValidationError:
        return None


def normalize_streams(raw_streams: Any, addon: Manifest) -> List[Stream]:
    """Normalize an addon's stream list, dropping unplayable entries"""
    if not isinstance(raw_streams, list):
        return []
    streams = []
    for raw in raw_streams:
        stream = normalize_stream(raw, addon)
        if stream is not None:
            streams.append(stream)
    return streams


class StreamDescription(BaseModel):
    """Display facts guessed from a stream's name and title"""
    quality: Optional[str] = None
    source: Optional[str] = None
    language: Optional[str] = None
    seeders: Optional[int] = None
    size: Optional[str] = None
    hdr: bool = False
    dolby: bool = False
    torrent: bool = False
    cached: bool = False


def describe_stream(stream: Stream) -> StreamDescription:
    """
    Extract quality, language, seeders and size hints from stream labels

    Addons only expose these as free text, e.g.
    "Torrentio\\n4k" / "Movie.2019.2160p.WEB-DL\\n👤 42 💾 12.3 GB".
    """
    text = "\n".join(part for part in (stream.name, stream.title, stream.description) if part)
    lowered = text.lower()

    quality = None
    quality_match = _QUALITY_RE.search(text)
    if quality_match:
        quality = f"{quality_match.group(1)}p"
    elif _UHD_RE.search(text):
        quality = "2160p"

    source_match = _SOURCE_RE.search(text)
    language_match = _LANGUAGE_RE.search(text)
    seeds_match = _SEEDS_RE.search(text)
    size_match = _SIZE_RE.search(text)

    seeders = None
    if seeds_match:
        seeders = int(seeds_match.group(1) or seeds_match.group(2))

    return StreamDescription(
        quality=quality,
        source=source_match.group(1).upper() if source_match else None,
        language=language_match.group(1).capitalize() if language_match else None,
        seeders=seeders,
        size=f"{size_match.group(1)} {size_match.group(2).upper()}" if size_match else None,
        hdr="hdr" in lowered,
        dolby="dolby" in lowered or "dovi" in lowered,
        torrent=stream.url.startswith("magnet:"),
        cached=bool(stream.behaviorHints.get("cached")),
    )
