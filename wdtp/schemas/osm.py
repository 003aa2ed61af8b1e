# wdtp/schemas/osm.py
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class OsmLocation(BaseModel):
    """
    A point of interest returned by the Overpass API.

    Immutable: derived values (distance, relevance) are attached by building
    a new instance with ``with_distance`` / ``with_relevance``. Without a
    ranking signal from the provider, text_rank sits at a neutral 0.5.
    """

    model_config = ConfigDict(frozen=True)

    source: Literal["external"] = "external"
    osm_id: str                     # "node/123456" | "way/789012"
    osm_type: Literal["node", "way", "relation"]
    name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    tags: dict[str, Any] = Field(default_factory=dict)
    distance_meters: float | None = None
    relevance_score: float | None = None
    text_rank: float = 0.5

    def with_distance(self, distance_meters: float) -> "OsmLocation":
        return self.model_copy(update={"distance_meters": distance_meters})

    def with_relevance(self, relevance_score: float) -> "OsmLocation":
        return self.model_copy(update={"relevance_score": relevance_score})

    def format_address(self) -> str | None:
        parts = [
            self.tags.get("addr:housenumber"),
            self.tags.get("addr:street"),
            self.tags.get("addr:city"),
            self.tags.get("addr:state"),
        ]
        parts = [str(p) for p in parts if p]
        return ", ".join(parts) if parts else None
