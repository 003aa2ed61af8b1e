# wdtp/routers/organizations.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFound
from ..db import get_db
from ..dependencies import get_stats_service
from ..models.organization import Organization
from ..schemas.common import OrganizationSummary
from ..schemas.statistics import StatsFilters, WageStatistics
from ..services.statistics import WageStatisticsService

router = APIRouter(prefix="/organizations", tags=["organizations"])


async def _get_organization(db: AsyncSession, organization_id: int) -> Organization:
    org = await db.get(Organization, organization_id)
    if org is None or not org.is_active:
        raise NotFound("Organization", organization_id)
    return org


@router.get("/{organization_id}", response_model=OrganizationSummary)
async def show_organization(organization_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_organization(db, organization_id)


@router.get("/{organization_id}/wage-stats", response_model=WageStatistics)
async def organization_wage_stats(
    organization_id: int,
    filters: Annotated[StatsFilters, Query()],
    db: AsyncSession = Depends(get_db),
    stats: WageStatisticsService = Depends(get_stats_service),
):
    # an organization without approved reports still answers, with zeros
    await _get_organization(db, organization_id)
    return await stats.get_organization_statistics(db, organization_id, filters)
