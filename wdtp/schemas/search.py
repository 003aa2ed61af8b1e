# wdtp/schemas/search.py
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from .common import OrganizationSummary, PageMeta, Point


class LocationSearchQuery(BaseModel):
    q: str = Field("", max_length=255, description="Free text; empty matches nothing")
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    radius_km: float = Field(10.0, ge=0.1, le=50)
    include_osm: bool = False
    # fail the request instead of degrading when OpenStreetMap is unavailable
    require_osm: bool = False
    min_wage_reports: Optional[int] = Field(None, ge=0)
    page: int = Field(1, ge=1)
    per_page: int = Field(100, ge=1, le=500)


class LocationIndexQuery(BaseModel):
    near: Optional[str] = Field(None, pattern=r"^-?\d+(\.\d+)?,-?\d+(\.\d+)?$")
    radius_km: float = Field(10.0, ge=0.1, le=50)
    organization_id: Optional[int] = Field(None, ge=1)
    page: int = Field(1, ge=1)
    per_page: int = Field(20, ge=1, le=100)


class UnifiedLocation(BaseModel):
    source: Literal["internal", "external"]
    location_id: Optional[int] = None
    osm_id: Optional[str] = None
    osm_type: Optional[str] = None
    name: str
    latitude: float
    longitude: float
    address: str = ""
    has_wage_data: bool = False
    wage_reports_count: int = 0
    tags: Optional[dict[str, Any]] = None
    organization: Optional[OrganizationSummary] = None
    distance_meters: Optional[int] = None
    relevance_score: Optional[float] = None


class SearchMeta(PageMeta):
    internal_count: int
    external_count: int
    search_query: str
    search_type: Literal["category", "name"]
    center: Point
    radius_km: float
    external_unavailable: bool = False


class SearchResponse(BaseModel):
    data: list[UnifiedLocation]
    meta: SearchMeta


class LocationPage(BaseModel):
    data: list[UnifiedLocation]
    meta: PageMeta
