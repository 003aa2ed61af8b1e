from pydantic import BaseModel, ConfigDict, Field

class Point(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

class OrganizationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    is_verified: bool = False
    wage_reports_count: int = 0

class LocationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    full_address: str
    city: str
    state_province: str
    latitude: float
    longitude: float
    wage_reports_count: int = 0

class PageMeta(BaseModel):
    total: int
    page: int
    per_page: int
    last_page: int

    @classmethod
    def build(cls, total: int, page: int, per_page: int) -> "PageMeta":
        return cls(total=total, page=page, per_page=per_page, last_page=max(1, -(-total // per_page)))
