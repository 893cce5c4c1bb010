"""
Addon Protocol Models
Pydantic models for addon manifests, catalog preferences and streams
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, List, Optional


class ManifestCatalog(BaseModel):
    """Catalog definition in manifest"""
    model_config = ConfigDict(extra="allow")

    type: str
    id: str
    name: str = ""
    extra: List[dict] = Field(default_factory=list)
    extraSupported: Optional[List[str]] = None
    extraRequired: Optional[List[str]] = None


class ManifestResource(BaseModel):
    """Resource (catalog, meta, stream, ...) an addon declares support for"""
    model_config = ConfigDict(extra="allow")

    name: str
    types: List[str] = Field(default_factory=list)
    idPrefixes: Optional[List[str]] = None

    def supports(self, content_type: str, content_id: Optional[str] = None) -> bool:
        if content_type not in self.types:
            return False
        if content_id is None or not self.idPrefixes:
            return True
        return any(content_id.startswith(prefix) for prefix in self.idPrefixes)


class Manifest(BaseModel):
    """Addon manifest as installed in the registry"""
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str = ""
    version: str = "0.0.0"
    description: str = ""

    # Base URL (manifest.json stripped) and the URL the addon was installed from
    url: Optional[str] = None
    originalUrl: Optional[str] = None

    catalogs: List[ManifestCatalog] = Field(default_factory=list)
    resources: List[ManifestResource] = Field(default_factory=list)
    types: List[str] = Field(default_factory=list)
    idPrefixes: Optional[List[str]] = None
    behaviorHints: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def expand_resources(cls, data: Any) -> Any:
        """Expand short-form resources ("stream") using manifest-level types."""
        if not isinstance(data, dict):
            return data
        resources = data.get("resources")
        if not isinstance(resources, list):
            return data

        expanded = []
        for resource in resources:
            if isinstance(resource, str):
                expanded.append({
                    "name": resource,
                    "types": list(data.get("types") or []),
                    "idPrefixes": data.get("idPrefixes"),
                })
            else:
                expanded.append(resource)
        return {**data, "resources": expanded}

    def supports(
        self,
        resource_name: str,
        content_type: str,
        content_id: Optional[str] = None
    ) -> bool:
        """Check whether the addon declares a resource for this type (and id)"""
        return any(
            resource.name == resource_name and resource.supports(content_type, content_id)
            for resource in self.resources
        )


class CatalogPreference(BaseModel):
    """User preference for a single addon catalog"""
    enabled: bool = True
    order: int = 1000


class EnabledCatalog(BaseModel):
    """Catalog joined with its addon, as shown on the home feed"""
    addonId: str
    addon: Manifest
    catalog: ManifestCatalog


class AddonCapabilities(BaseModel):
    """Summary of what an installed addon can serve"""
    id: str
    name: str
    version: str
    catalogs: List[ManifestCatalog] = Field(default_factory=list)
    resources: List[ManifestResource] = Field(default_factory=list)
    types: List[str] = Field(default_factory=list)


class Stream(BaseModel):
    """
    Normalized playable source, tagged with the addon it came from

    Fields cannot be reassigned, but behaviorHints is a plain dict built
    fresh for each stream; treat it as read-only.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    url: str
    name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    addonId: str
    addonName: str
    infoHash: Optional[str] = None
    fileIdx: Optional[int] = None
    behaviorHints: Dict[str, Any] = Field(default_factory=dict)


class StreamResponse(BaseModel):
    """Streams returned by one addon for one resolution request"""
    addon: str
    addonName: str
    streams: List[Stream]


class Meta(BaseModel):
    """Catalog item as served by an addon"""
    # Addons are inconsistent about numeric fields (releaseInfo: 2019 vs "2019")
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    type: str
    name: str = ""
    poster: Optional[str] = None
    background: Optional[str] = None
    logo: Optional[str] = None
    description: Optional[str] = None
    releaseInfo: Optional[str] = None
    imdbRating: Optional[str] = None


class MetaVideo(BaseModel):
    """Episode entry of a series meta"""
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    released: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None


class MetaDetails(Meta):
    """Full meta document, including episodes for series"""
    videos: List[MetaVideo] = Field(default_factory=list)
