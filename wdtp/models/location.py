"""Location model.

A location is a physical workplace. ``latitude``/``longitude`` are the
cached decimal coordinates used for sorting and bounding-box prefilters;
``point`` is the derived WGS 84 point (EWKT) that spatial predicates are
defined on. The two are only ever changed together through
``set_coordinates``.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.errors import InvalidCoordinates
from ..db import Base
from ..utils.time import utcnow


def make_point(latitude: float, longitude: float) -> str:
    """EWKT for a WGS 84 point; note the lon/lat axis order."""
    return f"SRID=4326;POINT({longitude:.8f} {latitude:.8f})"


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[int | None] = mapped_column(ForeignKey("organizations.id"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str | None] = mapped_column(String(255), unique=True)
    address_line_1: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    address_line_2: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    state_province: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    postal_code: Mapped[str | None] = mapped_column(String(20))
    country_code: Mapped[str] = mapped_column(String(2), nullable=False, default="US")
    description: Mapped[str | None] = mapped_column(Text)

    latitude: Mapped[float] = mapped_column(Numeric(10, 8, asdecimal=False), nullable=False)
    longitude: Mapped[float] = mapped_column(Numeric(11, 8, asdecimal=False), nullable=False)
    point: Mapped[str] = mapped_column(String(64), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # approved wage reports only
    wage_reports_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    osm_id: Mapped[int | None] = mapped_column(Integer, index=True)
    osm_type: Mapped[str | None] = mapped_column(String(16))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    organization: Mapped[Optional["Organization"]] = relationship(back_populates="locations", lazy="joined")

    def __init__(self, *, latitude: float, longitude: float, **kwargs):
        super().__init__(**kwargs)
        self.set_coordinates(latitude, longitude)

    def set_coordinates(self, latitude: float, longitude: float) -> None:
        """Move the location; the derived point is rewritten in the same step."""
        latitude, longitude = float(latitude), float(longitude)
        if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
            raise InvalidCoordinates(latitude, longitude)
        self.latitude = latitude
        self.longitude = longitude
        self.point = make_point(latitude, longitude)

    @property
    def full_address(self) -> str:
        parts = [self.address_line_1, self.address_line_2, self.city, self.state_province, self.postal_code]
        return ", ".join(p for p in parts if p)

    @property
    def display_name(self) -> str:
        return self.name or self.address_line_1

    def __repr__(self) -> str:
        return f"<Location id={self.id} name={self.name!r}>"


from .organization import Organization  # noqa: E402
