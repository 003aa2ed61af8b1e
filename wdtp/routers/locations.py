# wdtp/routers/locations.py
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFound
from ..db import get_db
from ..dependencies import get_gateway, get_stats_service
from ..models.location import Location
from ..schemas.common import PageMeta
from ..schemas.search import LocationIndexQuery, LocationPage, LocationSearchQuery, SearchResponse
from ..schemas.statistics import StatsFilters, WageStatistics
from ..services.location_search import list_locations, search_unified, to_unified
from ..services.overpass import OverpassGateway
from ..services.statistics import WageStatisticsService

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("", response_model=LocationPage)
async def index_locations(
    q: Annotated[LocationIndexQuery, Query()],
    db: AsyncSession = Depends(get_db),
):
    items, total = await list_locations(db, q)
    return LocationPage(
        data=[to_unified(item) for item in items],
        meta=PageMeta.build(total, q.page, q.per_page),
    )


@router.get("/search", response_model=SearchResponse, response_model_exclude_none=True)
async def search_locations(
    q: Annotated[LocationSearchQuery, Query()],
    db: AsyncSession = Depends(get_db),
    gateway: OverpassGateway = Depends(get_gateway),
):
    """
    Internal locations (and OpenStreetMap POIs with include_osm=true) that
    match every word of ``q`` within ``radius_km``, best relevance first.
    """
    outcome = await search_unified(db, gateway, q)
    return SearchResponse(data=[to_unified(c) for c in outcome.items], meta=outcome.meta)


@router.get("/{location_id}/wage-stats", response_model=WageStatistics)
async def location_wage_stats(
    location_id: int,
    filters: Annotated[StatsFilters, Query()],
    db: AsyncSession = Depends(get_db),
    stats: WageStatisticsService = Depends(get_stats_service),
):
    if await db.get(Location, location_id) is None:
        raise NotFound("Location", location_id)
    result = await stats.get_location_statistics(db, location_id, filters)
    if result.count == 0:
        raise HTTPException(status_code=422, detail="No wage data available for this location")
    return result
