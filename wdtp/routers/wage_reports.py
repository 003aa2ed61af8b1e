# wdtp/routers/wage_reports.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..dependencies import get_stats_service
from ..schemas.common import PageMeta
from ..schemas.statistics import StatsFilters, WageStatistics
from ..schemas.wage_reports import WageReportCreate, WageReportOut, WageReportPage, WageReportQuery
from ..services.statistics import WageStatisticsService
from ..services.wage_reports import get_wage_report, list_wage_reports, submit_wage_report

router = APIRouter(prefix="/wage-reports", tags=["wage-reports"])


def _out(report, distance=None) -> WageReportOut:
    out = WageReportOut.model_validate(report)
    if distance is not None:
        out.distance_meters = int(round(distance))
    return out


@router.get("", response_model=WageReportPage)
async def index_wage_reports(
    q: Annotated[WageReportQuery, Query()],
    db: AsyncSession = Depends(get_db),
):
    pairs, total = await list_wage_reports(db, q)
    return WageReportPage(
        data=[_out(r, d) for r, d in pairs],
        meta=PageMeta.build(total, q.page, q.per_page),
    )


@router.get("/stats", response_model=WageStatistics)
async def global_wage_stats(
    filters: Annotated[StatsFilters, Query()],
    db: AsyncSession = Depends(get_db),
    stats: WageStatisticsService = Depends(get_stats_service),
):
    return await stats.get_global_statistics(db, filters)


@router.post("", response_model=WageReportOut, status_code=status.HTTP_201_CREATED)
async def create_wage_report(
    payload: WageReportCreate,
    db: AsyncSession = Depends(get_db),
    stats: WageStatisticsService = Depends(get_stats_service),
):
    # anonymous submission; user attribution belongs to the auth layer
    report = await submit_wage_report(db, payload, stats)
    return _out(report)


@router.get("/{report_id}", response_model=WageReportOut)
async def show_wage_report(report_id: int, db: AsyncSession = Depends(get_db)):
    return _out(await get_wage_report(db, report_id))
