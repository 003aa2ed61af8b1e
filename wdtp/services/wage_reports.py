# wdtp/services/wage_reports.py
"""Submitting, moderating and listing wage reports."""
import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import InvalidStatusTransition, NotFound
from ..models.location import Location
from ..models.organization import Organization
from ..models.wage_report import ReportStatus, WageReport
from ..schemas.wage_reports import WageReportCreate, WageReportQuery
from . import spatial
from .sanity import sanity_score, status_for
from .statistics import WageStatisticsService
from .text_search import _like_pattern

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    ReportStatus.pending.value: {ReportStatus.approved.value, ReportStatus.rejected.value, ReportStatus.flagged.value},
    ReportStatus.flagged.value: {ReportStatus.approved.value, ReportStatus.rejected.value},
    ReportStatus.approved.value: {ReportStatus.flagged.value},
}


async def _bump_counters(session: AsyncSession, report: WageReport, delta: int) -> None:
    """Approved-report counters; never drop below zero."""
    await session.execute(
        update(Location)
        .where(Location.id == report.location_id, Location.wage_reports_count + delta >= 0)
        .values(wage_reports_count=Location.wage_reports_count + delta)
    )
    if report.organization_id is not None:
        await session.execute(
            update(Organization)
            .where(Organization.id == report.organization_id, Organization.wage_reports_count + delta >= 0)
            .values(wage_reports_count=Organization.wage_reports_count + delta)
        )


def _clear_stats(stats: WageStatisticsService, report: WageReport) -> None:
    stats.clear_cache("global")
    stats.clear_cache("location", report.location_id)
    if report.organization_id is not None:
        stats.clear_cache("organization", report.organization_id)


async def submit_wage_report(
    session: AsyncSession,
    payload: WageReportCreate,
    stats: WageStatisticsService,
    user_id: Optional[int] = None,
) -> WageReport:
    """
    Normalizes, scores and stores a new report. Normalization errors
    (InvalidPeriod, OutOfRange) propagate before anything is written.
    """
    location = await session.get(Location, payload.location_id)
    if location is None or not location.is_active:
        raise NotFound("Location", payload.location_id)

    fields = payload.model_dump(exclude={"location_id"})
    fields["employment_type"] = payload.employment_type.value
    report = WageReport(
        user_id=user_id,
        location_id=location.id,
        organization_id=location.organization_id,
        **fields,
    )
    report.sanity_score = await sanity_score(
        session, report.normalized_hourly_cents, location.id, location.organization_id
    )
    report.status = status_for(report.sanity_score).value

    session.add(report)
    await session.flush()
    if report.status == ReportStatus.approved.value:
        await _bump_counters(session, report, +1)
    await session.commit()

    _clear_stats(stats, report)
    logger.info(
        f"Wage report {report.id} stored as {report.status} "
        f"(location={report.location_id}, hourly={report.normalized_hourly_cents}, score={report.sanity_score})"
    )
    return await get_wage_report(session, report.id, approved_only=False)


async def transition_status(
    session: AsyncSession,
    report: WageReport,
    target: ReportStatus | str,
    stats: WageStatisticsService,
) -> WageReport:
    target = ReportStatus(target).value
    current = report.status
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransition(current, target)

    report.status = target
    if current != ReportStatus.approved.value and target == ReportStatus.approved.value:
        await _bump_counters(session, report, +1)
    elif current == ReportStatus.approved.value and target != ReportStatus.approved.value:
        await _bump_counters(session, report, -1)
    await session.commit()

    _clear_stats(stats, report)
    logger.info(f"Wage report {report.id}: {current} -> {target}")
    return report


async def get_wage_report(session: AsyncSession, report_id: int, approved_only: bool = True) -> WageReport:
    stmt = select(WageReport).where(WageReport.id == report_id).execution_options(populate_existing=True)
    if approved_only:
        stmt = stmt.where(WageReport.status == ReportStatus.approved.value)
    report = (await session.execute(stmt)).unique().scalar_one_or_none()
    if report is None:
        raise NotFound("WageReport", report_id)
    return report


def _filtered(q: WageReportQuery):
    stmt = select(WageReport).where(WageReport.status == q.status.value)
    if q.organization_id is not None:
        stmt = stmt.where(WageReport.organization_id == q.organization_id)
    if q.location_id is not None:
        stmt = stmt.where(WageReport.location_id == q.location_id)
    if q.job_title:
        stmt = stmt.where(WageReport.job_title.ilike(_like_pattern(q.job_title), escape="\\"))
    if q.min_hr is not None or q.max_hr is not None:
        lo = int(round((q.min_hr or 0) * 100))
        hi = int(round(q.max_hr * 100)) if q.max_hr is not None else 999999
        stmt = stmt.where(WageReport.normalized_hourly_cents.between(lo, hi))
    if q.since is not None:
        stmt = stmt.where(WageReport.effective_date >= q.since)
    if q.employment_type is not None:
        stmt = stmt.where(WageReport.employment_type == q.employment_type.value)
    if q.currency:
        stmt = stmt.where(WageReport.currency == q.currency.upper())
    return stmt


_ORDERINGS = {
    "recent": (WageReport.created_at.desc(), WageReport.id.desc()),
    "oldest": (WageReport.created_at.asc(), WageReport.id.asc()),
    "highest": (WageReport.normalized_hourly_cents.desc(), WageReport.id.asc()),
    "lowest": (WageReport.normalized_hourly_cents.asc(), WageReport.id.asc()),
}


async def list_wage_reports(
    session: AsyncSession, q: WageReportQuery
) -> tuple[list[tuple[WageReport, Optional[float]]], int]:
    """
    Returns (page of (report, distance_meters or None), total). With ``near``
    the radius check and distance sort run in Python after a bounding-box
    prefilter; otherwise paging happens in SQL.
    """
    stmt = _filtered(q)
    offset = (q.page - 1) * q.per_page

    if q.near:
        lat, lng = spatial.validate_coordinates(*q.near.split(","))
        stmt = stmt.join(WageReport.location).where(
            spatial.bbox_clause(Location.latitude, Location.longitude, lat, lng, q.radius_km)
        )
        order = _ORDERINGS.get(q.sort, _ORDERINGS["recent"])
        reports = (await session.execute(stmt.order_by(*order))).unique().scalars().all()
        limit = q.radius_km * 1000.0
        pairs = [
            (r, spatial.distance_meters(lat, lng, r.location.latitude, r.location.longitude)) for r in reports
        ]
        pairs = [(r, d) for r, d in pairs if d <= limit]
        if q.sort == "closest":
            pairs.sort(key=lambda p: p[1])
        return pairs[offset:offset + q.per_page], len(pairs)

    # "closest" without a centre falls back to most recent
    order = _ORDERINGS.get(q.sort, _ORDERINGS["recent"])
    total = (await session.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    page = (await session.execute(stmt.order_by(*order).offset(offset).limit(q.per_page))).unique().scalars().all()
    return [(r, None) for r in page], total
