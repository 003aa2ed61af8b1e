"""Tests for entity invariants on Location and WageReport."""

import pytest

from wdtp.core.errors import InvalidCoordinates, InvalidPeriod, OutOfRange
from wdtp.models.location import Location, make_point
from wdtp.models.wage_report import WageReport


def location(**kwargs):
    fields = {"name": "Joe's Coffee", "address_line_1": "1 Main St", "city": "New York",
              "state_province": "NY", "latitude": 40.7128, "longitude": -74.0060}
    fields.update(kwargs)
    return Location(**fields)


class TestLocationPoint:
    def test_point_derived_on_create(self):
        loc = location()
        assert loc.point == make_point(40.7128, -74.0060)
        assert loc.point == "SRID=4326;POINT(-74.00600000 40.71280000)"

    def test_point_follows_coordinate_change(self):
        loc = location()
        loc.set_coordinates(34.0522, -118.2437)
        assert (loc.latitude, loc.longitude) == (34.0522, -118.2437)
        assert loc.point == make_point(34.0522, -118.2437)

    def test_out_of_range_rejected_on_create(self):
        with pytest.raises(InvalidCoordinates):
            location(latitude=90.5)

    def test_failed_move_leaves_location_untouched(self):
        loc = location()
        with pytest.raises(InvalidCoordinates):
            loc.set_coordinates(0, 200)
        assert (loc.latitude, loc.longitude) == (40.7128, -74.0060)
        assert loc.point == make_point(40.7128, -74.0060)

    @pytest.mark.asyncio
    async def test_persisted_point_matches(self, session):
        loc = location()
        session.add(loc)
        await session.commit()
        await session.refresh(loc)
        assert loc.point == make_point(loc.latitude, loc.longitude)


class TestLocationDisplay:
    def test_full_address_skips_blanks(self):
        loc = location(address_line_2=None, postal_code="10004")
        assert loc.full_address == "1 Main St, New York, NY, 10004"

    def test_display_name_falls_back_to_address(self):
        assert location(name="").display_name == "1 Main St"


class TestWageReport:
    def report(self, **kwargs):
        fields = {"location_id": 1, "job_title": "Barista", "wage_period": "weekly", "amount_cents": 60000}
        fields.update(kwargs)
        return WageReport(**fields)

    def test_normalized_on_create(self):
        assert self.report().normalized_hourly_cents == 1500

    def test_hours_per_week_used(self):
        assert self.report(hours_per_week=30).normalized_hourly_cents == 2000

    def test_invalid_period(self):
        with pytest.raises(InvalidPeriod):
            self.report(wage_period="daily")

    def test_out_of_range(self):
        with pytest.raises(OutOfRange):
            self.report(wage_period="hourly", amount_cents=5_200_000)

    def test_custom_band(self):
        report = self.report(wage_period="hourly", amount_cents=150, min_cents=100)
        assert report.normalized_hourly_cents == 150

    def test_wage_inputs_frozen(self):
        report = self.report()
        with pytest.raises(AttributeError):
            report.amount_cents = 70000
        with pytest.raises(AttributeError):
            report.wage_period = "hourly"
        with pytest.raises(AttributeError):
            report.normalized_hourly_cents = 1

    def test_same_value_assignment_allowed(self):
        report = self.report()
        report.amount_cents = 60000
        assert report.normalized_hourly_cents == 1500

    def test_outlier_flag(self):
        report = self.report()
        report.sanity_score = -5
        assert report.is_outlier
        report.sanity_score = 0
        assert not report.is_outlier
