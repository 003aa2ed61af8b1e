# wdtp/services/sanity.py
"""
Outlier score for a new wage report.

The report is compared with the approved reports of its location, falling
back to its organization, using the median absolute deviation (MAD). With
fewer than MIN_SAMPLE_SIZE peers only the global plausibility band is
checked. Scores: 5 normal, 0 slight concern, -2 moderate outlier,
-5 strong outlier. A negative score holds the report for moderation.
"""
from typing import Optional, Sequence

import numpy as np
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..models.wage_report import ReportStatus, WageReport


K_MAD = 6
MIN_SAMPLE_SIZE = 3


def mad_score(wage_cents: int, peers: Sequence[int]) -> int:
    arr = np.asarray(peers, dtype=float)
    median = float(np.median(arr))
    mad = float(np.median(np.abs(arr - median)))
    if mad == 0:
        return 5 if wage_cents == median else 0

    ratio = abs(wage_cents - median) / mad
    if ratio > K_MAD:
        return -5
    if ratio > 3:
        return -2
    if ratio > 1.5:
        return 0
    return 5


def bounds_score(wage_cents: int) -> int:
    if wage_cents < settings.wage_min_hourly_cents or wage_cents > settings.wage_max_hourly_cents:
        return -5
    return 0


async def _approved_wages(session: AsyncSession, column, value) -> list[int]:
    result = await session.execute(
        select(WageReport.normalized_hourly_cents).where(
            column == value, WageReport.status == ReportStatus.approved.value
        )
    )
    return list(result.scalars().all())


async def sanity_score(
    session: AsyncSession,
    wage_cents: int,
    location_id: Optional[int],
    organization_id: Optional[int],
) -> int:
    if location_id is not None:
        peers = await _approved_wages(session, WageReport.location_id, location_id)
        if len(peers) >= MIN_SAMPLE_SIZE:
            return mad_score(wage_cents, peers)

    if organization_id is not None:
        peers = await _approved_wages(session, WageReport.organization_id, organization_id)
        if len(peers) >= MIN_SAMPLE_SIZE:
            return mad_score(wage_cents, peers)

    return bounds_score(wage_cents)


def status_for(score: int) -> ReportStatus:
    return ReportStatus.approved if score >= 0 else ReportStatus.pending
