# wdtp/services/location_search.py
"""
Unified location search: internal locations plus OpenStreetMap POIs,
scored on one scale and interleaved by relevance.

Both kinds of candidate carry a ``source`` tag ("internal" | "external")
and the ``text_rank`` / ``distance_meters`` pair the scorer reads, so
scoring and serialization treat them alike without a shared base class.
"""
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.errors import GatewayError
from ..models.location import Location
from ..schemas.common import OrganizationSummary, PageMeta, Point
from ..schemas.osm import OsmLocation
from ..schemas.search import LocationIndexQuery, LocationSearchQuery, SearchMeta, UnifiedLocation
from . import spatial
from .overpass import OverpassGateway
from .relevance import RelevanceScorer, default_scorer
from .text_search import match_clause, rank_matches, split_terms

logger = logging.getLogger(__name__)

CATEGORY_KEYWORDS = (
    "restaurant", "cafe", "coffee", "store", "shop", "market",
    "hospital", "clinic", "pharmacy", "hotel", "motel", "inn",
    "bank", "gas", "station", "grocery", "retail", "bar", "pub",
)


@dataclass
class RankedLocation:
    """An internal Location row with the query-scoped values attached."""

    location: Location
    text_rank: Optional[float] = None
    distance_meters: Optional[float] = None
    relevance_score: Optional[float] = None
    source: Literal["internal"] = "internal"

    @property
    def name(self) -> str:
        return self.location.name

    @property
    def latitude(self) -> float:
        return self.location.latitude

    @property
    def longitude(self) -> float:
        return self.location.longitude


Candidate = Union[RankedLocation, OsmLocation]


@dataclass
class SearchOutcome:
    items: list[Candidate]
    meta: SearchMeta


def detect_search_type(query: str) -> str:
    lowered = query.lower()
    return "category" if any(k in lowered for k in CATEGORY_KEYWORDS) else "name"


async def search_internal(
    session: AsyncSession,
    query: str,
    lat: float,
    lng: float,
    radius_km: float,
    min_wage_reports: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[RankedLocation]:
    """Active locations matching every query term within radius_km, with rank and distance."""
    terms = split_terms(query)
    if not terms:
        return []
    lat, lng = spatial.validate_coordinates(lat, lng)

    stmt = (
        select(Location)
        .where(
            Location.is_active.is_(True),
            match_clause(Location, terms),
            spatial.bbox_clause(Location.latitude, Location.longitude, lat, lng, radius_km),
        )
        .order_by(Location.id)
    )
    if min_wage_reports:
        stmt = stmt.where(Location.wage_reports_count >= min_wage_reports)
    rows = (await session.execute(stmt)).unique().scalars().all()

    ranked = rank_matches(rows, query)
    ranks = {id(loc): rank for loc, rank in ranked}
    inside = spatial.near([loc for loc, _ in ranked], lat, lng, radius_km)
    # nearest first so the cap keeps the closest matches
    inside = spatial.order_by_distance(inside, lat, lng)
    results = [
        RankedLocation(location=loc, text_rank=ranks[id(loc)], distance_meters=dist)
        for loc, dist in spatial.with_distance(inside, lat, lng)
    ]
    return results[: limit or settings.search_max_results]


async def search_unified(
    session: AsyncSession,
    gateway: OverpassGateway,
    params: LocationSearchQuery,
    scorer: RelevanceScorer = default_scorer,
) -> SearchOutcome:
    internal = await search_internal(
        session, params.q, params.lat, params.lng, params.radius_km, params.min_wage_reports
    )
    for item in internal:
        item.relevance_score = scorer.score(item, params.radius_km)

    external: list[OsmLocation] = []
    external_unavailable = False
    if params.include_osm and split_terms(params.q):
        try:
            found = await gateway.search(params.q, params.lat, params.lng, params.radius_km)
        except GatewayError as e:
            if params.require_osm:
                raise
            logger.warning(
                f"OSM search failed, continuing with internal results only: {e} "
                f"(query={params.q!r}, lat={params.lat}, lng={params.lng}, radius_km={params.radius_km})"
            )
            external_unavailable = True
        else:
            external = [
                poi.with_relevance(scorer.score(poi, params.radius_km))
                for poi in found[: settings.search_max_results]
            ]

    merged: list[Candidate] = sorted([*internal, *external], key=lambda c: -(c.relevance_score or 0.0))
    offset = (params.page - 1) * params.per_page
    page = PageMeta.build(len(merged), params.page, params.per_page)

    meta = SearchMeta(
        **page.model_dump(),
        internal_count=len(internal),
        external_count=len(external),
        search_query=params.q,
        search_type=detect_search_type(params.q),
        center=Point(lat=params.lat, lng=params.lng),
        radius_km=params.radius_km,
        external_unavailable=external_unavailable,
    )
    return SearchOutcome(items=merged[offset: offset + params.per_page], meta=meta)


async def list_locations(session: AsyncSession, q: LocationIndexQuery) -> tuple[list[RankedLocation], int]:
    stmt = select(Location).where(Location.is_active.is_(True))
    if q.organization_id is not None:
        stmt = stmt.where(Location.organization_id == q.organization_id)
    offset = (q.page - 1) * q.per_page

    if q.near:
        lat, lng = spatial.validate_coordinates(*q.near.split(","))
        stmt = stmt.where(spatial.bbox_clause(Location.latitude, Location.longitude, lat, lng, q.radius_km))
        rows = (await session.execute(stmt.order_by(Location.id))).unique().scalars().all()
        inside = spatial.order_by_distance(spatial.near(rows, lat, lng, q.radius_km), lat, lng)
        annotated = [RankedLocation(location=loc, distance_meters=d) for loc, d in spatial.with_distance(inside, lat, lng)]
        return annotated[offset: offset + q.per_page], len(annotated)

    rows = (await session.execute(stmt.order_by(Location.id))).unique().scalars().all()
    return [RankedLocation(location=loc) for loc in rows[offset: offset + q.per_page]], len(rows)


def to_unified(candidate: Candidate) -> UnifiedLocation:
    distance = None if candidate.distance_meters is None else int(round(candidate.distance_meters))
    score = None if candidate.relevance_score is None else round(candidate.relevance_score, 2)

    if candidate.source == "external":
        return UnifiedLocation(
            source="external",
            osm_id=candidate.osm_id,
            osm_type=candidate.osm_type,
            name=candidate.name,
            latitude=candidate.latitude,
            longitude=candidate.longitude,
            address=candidate.format_address() or "",
            tags=dict(candidate.tags),
            distance_meters=distance,
            relevance_score=score,
        )

    loc = candidate.location
    return UnifiedLocation(
        source="internal",
        location_id=loc.id,
        name=loc.name,
        latitude=loc.latitude,
        longitude=loc.longitude,
        address=loc.full_address,
        has_wage_data=loc.wage_reports_count > 0,
        wage_reports_count=loc.wage_reports_count,
        organization=OrganizationSummary.model_validate(loc.organization) if loc.organization else None,
        distance_meters=distance,
        relevance_score=score,
    )
