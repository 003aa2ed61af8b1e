# wdtp/services/statistics.py
"""
Wage statistics over approved reports, for three scopes: global, one
location, one organization.

Percentiles are continuous (linear interpolation between order statistics,
the same definition as SQL percentile_cont). Standard deviation is the
population one. All money values are integer cents, rounded half away from
zero.

Results are memoized per (scope, scope id, filter hash) for a fixed TTL.
Invalidation is best effort: entries may be up to TTL stale.
"""
import logging
import math
from collections import defaultdict
from typing import Iterable, Optional

import numpy as np
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..models.location import Location
from ..models.wage_report import ReportStatus, WageReport
from ..schemas.statistics import (
    EmploymentTypeBucket,
    GeoBucket,
    JobTitleBucket,
    Percentiles,
    Scope,
    StatsFilters,
    WageStatistics,
)
from .cache import StatsCache

logger = logging.getLogger(__name__)

CACHE_PREFIX = "wage_stats:"
TOP_JOB_TITLES = 10
TOP_CITIES = 15
PERCENTILES = (25, 50, 75, 90)


def _cents(x: float) -> int:
    # ROUND() semantics: half away from zero
    return int(math.floor(abs(x) + 0.5)) * (1 if x >= 0 else -1)


def summarize(values: Iterable[int]) -> WageStatistics:
    """Aggregate numbers for a list of hourly cents; all zeros when empty."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return WageStatistics()

    p25, p50, p75, p90 = (float(p) for p in np.percentile(arr, PERCENTILES, method="linear"))
    return WageStatistics(
        count=int(arr.size),
        average_cents=_cents(float(arr.mean())),
        median_cents=_cents(float(np.median(arr))),
        min_cents=int(arr.min()),
        max_cents=int(arr.max()),
        std_deviation_cents=_cents(float(arr.std(ddof=0))),
        percentiles=Percentiles(p25=_cents(p25), p50=_cents(p50), p75=_cents(p75), p90=_cents(p90)),
    )


def _grouped(rows, key) -> list[tuple[tuple, int, int]]:
    """(group key, count, average cents), most frequent first, ties by key."""
    groups: dict[tuple, list[int]] = defaultdict(list)
    for row in rows:
        groups[key(row)].append(row.cents)
    out = [(k, len(v), _cents(sum(v) / len(v))) for k, v in groups.items()]
    out.sort(key=lambda g: (-g[1], tuple("" if part is None else str(part) for part in g[0])))
    return out


def compute_statistics(rows, scope: Scope) -> WageStatistics:
    """
    rows: objects with ``cents``, ``employment_type``, ``job_title``, ``city``
    and ``state`` attributes (one per approved report).
    """
    rows = list(rows)
    stats = summarize(r.cents for r in rows)
    if stats.count == 0:
        return stats

    stats.employment_types = [
        EmploymentTypeBucket(type=k[0], count=n, average_cents=avg)
        for k, n, avg in _grouped(rows, lambda r: (r.employment_type,))
    ]
    stats.job_titles = [
        JobTitleBucket(title=k[0], count=n, average_cents=avg)
        for k, n, avg in _grouped(rows, lambda r: (r.job_title,))[:TOP_JOB_TITLES]
    ]
    if scope == "global":
        stats.geographic_distribution = [
            GeoBucket(city=k[0] or "", state=k[1] or "", count=n, average_cents=avg)
            for k, n, avg in _grouped(rows, lambda r: (r.city, r.state))[:TOP_CITIES]
        ]
    return stats


def base_cache_key(scope: Scope, scope_id: Optional[int] = None) -> str:
    if scope == "global":
        return f"{CACHE_PREFIX}global"
    return f"{CACHE_PREFIX}{scope}:{scope_id}"


def cache_key(scope: Scope, scope_id: Optional[int], filters: StatsFilters) -> str:
    # '|' terminates the scope part so location:5 never prefixes location:50
    return f"{base_cache_key(scope, scope_id)}|{filters.cache_fragment()}"


def _apply_filters(stmt, filters: StatsFilters):
    if filters.date_from is not None:
        stmt = stmt.where(WageReport.effective_date >= filters.date_from)
    if filters.date_to is not None:
        stmt = stmt.where(WageReport.effective_date <= filters.date_to)
    if filters.employment_type is not None:
        stmt = stmt.where(WageReport.employment_type == filters.employment_type.value)
    if filters.position_category_id is not None:
        stmt = stmt.where(WageReport.position_category_id == filters.position_category_id)
    if filters.min_wage_cents is not None:
        stmt = stmt.where(WageReport.normalized_hourly_cents >= filters.min_wage_cents)
    if filters.max_wage_cents is not None:
        stmt = stmt.where(WageReport.normalized_hourly_cents <= filters.max_wage_cents)
    if filters.currency is not None:
        stmt = stmt.where(WageReport.currency == filters.currency)
    if filters.unionized is not None:
        stmt = stmt.where(WageReport.unionized.is_(filters.unionized))
    if filters.tips_included is not None:
        stmt = stmt.where(WageReport.tips_included.is_(filters.tips_included))
    return stmt


class WageStatisticsService:
    def __init__(self, cache: StatsCache, ttl: float | None = None):
        self.cache = cache
        self.ttl = settings.stats_cache_ttl if ttl is None else ttl

    async def compute(
        self,
        session: AsyncSession,
        scope: Scope,
        scope_id: Optional[int] = None,
        filters: Optional[StatsFilters] = None,
    ) -> WageStatistics:
        if scope not in ("global", "location", "organization"):
            raise ValueError(f"Unknown statistics scope: {scope!r}")
        if scope != "global" and scope_id is None:
            raise ValueError(f"scope {scope!r} needs a scope_id")
        filters = filters or StatsFilters()

        key = cache_key(scope, scope_id, filters)
        cached = self.cache.get(key)
        if cached is not None:
            return WageStatistics.model_validate(cached)

        rows = await self._load_rows(session, scope, scope_id, filters)
        stats = compute_statistics(rows, scope)
        self.cache.set(key, stats.model_dump(), self.ttl)
        return stats

    async def get_global_statistics(self, session: AsyncSession, filters: Optional[StatsFilters] = None):
        return await self.compute(session, "global", None, filters)

    async def get_location_statistics(
        self, session: AsyncSession, location_id: int, filters: Optional[StatsFilters] = None
    ):
        return await self.compute(session, "location", location_id, filters)

    async def get_organization_statistics(
        self, session: AsyncSession, organization_id: int, filters: Optional[StatsFilters] = None
    ):
        return await self.compute(session, "organization", organization_id, filters)

    def clear_cache(self, scope: Optional[Scope] = None, scope_id: Optional[int] = None) -> None:
        """Drop cached results for one scope (every filter combination)."""
        if scope is None:
            self.clear_all_caches()
            return
        removed = self.cache.delete_prefix(base_cache_key(scope, scope_id) + "|")
        logger.info(f"Cleared {removed} cached statistics for {scope} {scope_id or ''}".rstrip())

    def clear_all_caches(self) -> None:
        removed = self.cache.delete_prefix(CACHE_PREFIX)
        logger.info(f"Cleared {removed} cached statistics")

    async def _load_rows(self, session: AsyncSession, scope: Scope, scope_id, filters: StatsFilters):
        stmt = (
            select(
                WageReport.normalized_hourly_cents.label("cents"),
                WageReport.employment_type,
                WageReport.job_title,
                Location.city,
                Location.state_province.label("state"),
            )
            .join(Location, WageReport.location_id == Location.id)
            .where(WageReport.status == ReportStatus.approved.value)
            .order_by(WageReport.id)
        )
        if scope == "location":
            stmt = stmt.where(WageReport.location_id == scope_id)
        elif scope == "organization":
            stmt = stmt.where(WageReport.organization_id == scope_id)
        stmt = _apply_filters(stmt, filters)
        result = await session.execute(stmt)
        return result.all()
