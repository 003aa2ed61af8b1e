from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from ..db import Base
from ..services.wage_normalizer import normalize
from ..utils.time import utcnow


class ReportStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    flagged = "flagged"


class EmploymentType(str, Enum):
    full_time = "full_time"
    part_time = "part_time"
    seasonal = "seasonal"
    contract = "contract"


# fields that feed normalized_hourly_cents; frozen once the report exists
_IMMUTABLE = ("amount_cents", "wage_period", "hours_per_week", "shift_hours", "normalized_hourly_cents")


class WageReport(Base):
    __tablename__ = "wage_reports"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(Integer, index=True)
    organization_id: Mapped[int | None] = mapped_column(ForeignKey("organizations.id"), index=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), index=True, nullable=False)
    position_category_id: Mapped[int | None] = mapped_column(Integer, index=True)

    job_title: Mapped[str] = mapped_column(String(255), nullable=False)
    employment_type: Mapped[str] = mapped_column(String(32), nullable=False, default=EmploymentType.full_time.value)
    wage_period: Mapped[str] = mapped_column(String(16), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    normalized_hourly_cents: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    hours_per_week: Mapped[int | None] = mapped_column(Integer)
    shift_hours: Mapped[int | None] = mapped_column(Integer)

    effective_date: Mapped[date | None] = mapped_column(Date, index=True)
    tips_included: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    unionized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    source: Mapped[str] = mapped_column(String(32), default="user", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    status: Mapped[str] = mapped_column(String(16), default=ReportStatus.pending.value, nullable=False, index=True)
    sanity_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    location: Mapped["Location"] = relationship(lazy="joined")
    organization: Mapped[Optional["Organization"]] = relationship(lazy="joined")

    def __init__(self, *, min_cents: int | None = None, max_cents: int | None = None, **kwargs):
        super().__init__(**kwargs)
        if self.normalized_hourly_cents is None:
            band = {}
            if min_cents is not None:
                band["min_cents"] = min_cents
            if max_cents is not None:
                band["max_cents"] = max_cents
            self.normalized_hourly_cents = normalize(
                self.amount_cents,
                self.wage_period,
                self.hours_per_week,
                self.shift_hours,
                **band,
            )

    @validates(*_IMMUTABLE)
    def _freeze(self, key, value):
        current = self.__dict__.get(key)
        if current is not None and current != value:
            raise AttributeError(f"{key} cannot change once a wage report exists")
        return value

    @property
    def is_outlier(self) -> bool:
        return self.sanity_score < -2

    def __repr__(self) -> str:
        return f"<WageReport id={self.id} status={self.status} hourly={self.normalized_hourly_cents}>"


from .location import Location  # noqa: E402
from .organization import Organization  # noqa: E402
