# wdtp/schemas/statistics.py
import hashlib
import json
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..models.wage_report import EmploymentType

Scope = Literal["global", "location", "organization"]


class StatsFilters(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    employment_type: Optional[EmploymentType] = None
    position_category_id: Optional[int] = None
    min_wage_cents: Optional[int] = Field(None, ge=0)
    max_wage_cents: Optional[int] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    unionized: Optional[bool] = None
    tips_included: Optional[bool] = None

    @model_validator(mode="after")
    def _check_ranges(self):
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        if (
            self.min_wage_cents is not None
            and self.max_wage_cents is not None
            and self.min_wage_cents > self.max_wage_cents
        ):
            raise ValueError("min_wage_cents must not exceed max_wage_cents")
        if self.currency:
            self.currency = self.currency.upper()
        return self

    def active(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)

    def cache_fragment(self) -> str:
        """Stable hash of the filters that are set; '' when none are."""
        active = self.active()
        if not active:
            return ""
        blob = json.dumps(active, sort_keys=True, separators=(",", ":"))
        return hashlib.md5(blob.encode("utf-8")).hexdigest()


class Percentiles(BaseModel):
    p25: int = 0
    p50: int = 0
    p75: int = 0
    p90: int = 0


class EmploymentTypeBucket(BaseModel):
    type: str
    count: int
    average_cents: int


class JobTitleBucket(BaseModel):
    title: str
    count: int
    average_cents: int


class GeoBucket(BaseModel):
    city: str
    state: str
    count: int
    average_cents: int


class WageStatistics(BaseModel):
    count: int = 0
    average_cents: int = 0
    median_cents: int = 0
    min_cents: int = 0
    max_cents: int = 0
    std_deviation_cents: int = 0
    percentiles: Percentiles = Field(default_factory=Percentiles)
    employment_types: list[EmploymentTypeBucket] = Field(default_factory=list)
    job_titles: list[JobTitleBucket] = Field(default_factory=list)
    geographic_distribution: list[GeoBucket] = Field(default_factory=list)
