# wdtp/schemas/wage_reports.py
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.wage_report import EmploymentType, ReportStatus
from .common import LocationSummary, OrganizationSummary, PageMeta


class WageReportCreate(BaseModel):
    location_id: int = Field(..., ge=1)
    job_title: str = Field(..., min_length=2, max_length=255)
    employment_type: EmploymentType = EmploymentType.full_time
    # plain str so an unknown period reaches the normalizer (InvalidPeriod)
    wage_period: str
    currency: str = Field("USD", min_length=3, max_length=3)
    amount_cents: int = Field(..., gt=0)
    hours_per_week: Optional[int] = Field(None, ge=1, le=168)
    shift_hours: Optional[int] = Field(None, ge=1, le=24)
    effective_date: Optional[date] = None
    tips_included: bool = False
    unionized: bool = False
    position_category_id: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("currency")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()

    @field_validator("job_title")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()


class WageReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_title: str
    employment_type: str
    wage_period: str
    currency: str
    amount_cents: int
    normalized_hourly_cents: int
    hours_per_week: Optional[int] = None
    effective_date: Optional[date] = None
    tips_included: bool
    unionized: bool
    status: str
    sanity_score: int
    created_at: Optional[datetime] = None
    location: Optional[LocationSummary] = None
    organization: Optional[OrganizationSummary] = None
    distance_meters: Optional[int] = None


class WageReportPage(BaseModel):
    data: list[WageReportOut]
    meta: PageMeta


class WageReportQuery(BaseModel):
    organization_id: Optional[int] = Field(None, ge=1)
    location_id: Optional[int] = Field(None, ge=1)
    job_title: Optional[str] = Field(None, min_length=2)
    min_hr: Optional[float] = Field(None, ge=0)
    max_hr: Optional[float] = Field(None, ge=0)
    since: Optional[date] = None
    status: ReportStatus = ReportStatus.approved
    employment_type: Optional[EmploymentType] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    near: Optional[str] = Field(None, pattern=r"^-?\d+(\.\d+)?,-?\d+(\.\d+)?$")
    radius_km: float = Field(10.0, ge=0.1, le=100)
    sort: Literal["recent", "oldest", "highest", "lowest", "closest"] = "recent"
    page: int = Field(1, ge=1)
    per_page: int = Field(25, ge=1, le=100)

    @model_validator(mode="after")
    def _check(self):
        if self.min_hr is not None and self.max_hr is not None and self.max_hr <= self.min_hr:
            raise ValueError("max_hr must be greater than min_hr")
        return self
