"""HTTP tests for wage report submission, listing and display."""

import pytest

from wdtp.core.errors import InvalidStatusTransition
from wdtp.services.wage_reports import transition_status

URL = "/api/v1/wage-reports"


def payload(location, **kwargs):
    body = {"location_id": location.id, "job_title": "Barista", "wage_period": "hourly", "amount_cents": 1500}
    body.update(kwargs)
    return body


# ============================================================
# Submission
# ============================================================

class TestSubmit:
    @pytest.mark.asyncio
    async def test_created_and_approved(self, client, session, world):
        r = await client.post(URL, json=payload(world.joes))
        assert r.status_code == 201
        body = r.json()
        assert body["status"] == "approved"
        assert body["normalized_hourly_cents"] == 1500
        assert body["sanity_score"] == 0
        assert body["location"]["id"] == world.joes.id
        assert body["location"]["full_address"] == "1 Main St, New York, NY"
        assert body["organization"]["id"] == world.org.id

    @pytest.mark.asyncio
    async def test_counters_bumped(self, client, session, world):
        await client.post(URL, json=payload(world.joes))
        await session.refresh(world.joes)
        await session.refresh(world.org)
        assert world.joes.wage_reports_count == 1
        assert world.org.wage_reports_count == 1

    @pytest.mark.asyncio
    async def test_yearly_salary_normalized(self, client, world):
        r = await client.post(URL, json=payload(world.diner, wage_period="yearly", amount_cents=3_120_000))
        assert r.status_code == 201
        assert r.json()["normalized_hourly_cents"] == 1500
        assert r.json()["organization"] is None

    @pytest.mark.asyncio
    async def test_invalid_period(self, client, world):
        r = await client.post(URL, json=payload(world.joes, wage_period="daily"))
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidPeriod"

    @pytest.mark.asyncio
    async def test_out_of_range_is_not_stored(self, client, world):
        r = await client.post(URL, json=payload(world.joes, amount_cents=50))
        assert r.status_code == 422
        assert r.json()["error"] == "OutOfRange"
        listing = (await client.get(URL, params={"status": "pending"})).json()
        assert listing["meta"]["total"] == 0
        assert (await client.get(URL)).json()["meta"]["total"] == 0

    @pytest.mark.asyncio
    async def test_unknown_location(self, client, world):
        r = await client.post(URL, json={**payload(world.joes), "location_id": 9999})
        assert r.status_code == 404
        assert r.json()["error"] == "NotFound"

    @pytest.mark.asyncio
    async def test_inactive_location(self, client, world):
        r = await client.post(URL, json=payload(world.closed))
        assert r.status_code == 404

    @pytest.mark.asyncio
    async def test_request_shape_validated(self, client, world):
        r = await client.post(URL, json=payload(world.joes, hours_per_week=200))
        assert r.status_code == 422
        r = await client.post(URL, json=payload(world.joes, amount_cents=0))
        assert r.status_code == 422

    @pytest.mark.asyncio
    async def test_outlier_held_for_moderation(self, client, session, world, add_report):
        for cents in (1500, 1600, 1700):
            await add_report(world.joes, cents)
        r = await client.post(URL, json=payload(world.joes, amount_cents=19000))
        assert r.status_code == 201
        body = r.json()
        assert body["status"] == "pending"
        assert body["sanity_score"] == -5

        assert (await client.get(f"{URL}/{body['id']}")).status_code == 404
        await session.refresh(world.joes)
        assert world.joes.wage_reports_count == 0

    @pytest.mark.asyncio
    async def test_clears_cached_statistics(self, client, world):
        assert (await client.get(f"{URL}/stats")).json()["count"] == 0
        await client.post(URL, json=payload(world.joes))
        assert (await client.get(f"{URL}/stats")).json()["count"] == 1


# ============================================================
# Listing and display
# ============================================================

class TestListing:
    @pytest.fixture
    def seeded(self, world, add_report):
        async def _seed():
            await add_report(world.joes, 1200)
            await add_report(world.palace, 1800, job_title="Line Cook", employment_type="part_time")
            await add_report(world.philly, 2500, job_title="Manager")
            await add_report(world.diner, 1300, status="pending")
        return _seed

    @pytest.mark.asyncio
    async def test_approved_only_by_default(self, client, seeded):
        await seeded()
        body = (await client.get(URL, params={"sort": "highest"})).json()
        assert [row["normalized_hourly_cents"] for row in body["data"]] == [2500, 1800, 1200]
        assert body["meta"]["total"] == 3

    @pytest.mark.asyncio
    async def test_lowest_first(self, client, seeded):
        await seeded()
        body = (await client.get(URL, params={"sort": "lowest"})).json()
        assert [row["normalized_hourly_cents"] for row in body["data"]] == [1200, 1800, 2500]

    @pytest.mark.asyncio
    async def test_filters(self, client, world, seeded):
        await seeded()

        async def cents(**params):
            body = (await client.get(URL, params={"sort": "lowest", **params})).json()
            return [row["normalized_hourly_cents"] for row in body["data"]]

        assert await cents(min_hr=15) == [1800, 2500]
        assert await cents(max_hr=20) == [1200, 1800]
        assert await cents(job_title="cook") == [1800]
        assert await cents(employment_type="part_time") == [1800]
        assert await cents(organization_id=world.org.id) == [1200, 1800]
        assert await cents(location_id=world.philly.id) == [2500]
        assert await cents(status="pending") == [1300]

    @pytest.mark.asyncio
    async def test_job_title_wildcards_are_literal(self, client, seeded):
        await seeded()
        for title in ("%%", "__", "Bar%"):
            body = (await client.get(URL, params={"job_title": title})).json()
            assert body["data"] == []
            assert body["meta"]["total"] == 0

    @pytest.mark.asyncio
    async def test_near_with_distance(self, client, seeded):
        await seeded()
        r = await client.get(URL, params={"near": "40.7128,-74.0060", "radius_km": 10, "sort": "closest"})
        body = r.json()
        assert [row["normalized_hourly_cents"] for row in body["data"]] == [1200, 1800]
        assert body["data"][0]["distance_meters"] == 0
        assert 8000 < body["data"][1]["distance_meters"] < 9000
        assert body["meta"]["total"] == 2

    @pytest.mark.asyncio
    async def test_pagination(self, client, seeded):
        await seeded()
        body = (await client.get(URL, params={"sort": "lowest", "per_page": 2, "page": 2})).json()
        assert [row["normalized_hourly_cents"] for row in body["data"]] == [2500]
        assert body["meta"]["last_page"] == 2

    @pytest.mark.asyncio
    async def test_bad_wage_range(self, client, world):
        r = await client.get(URL, params={"min_hr": 20, "max_hr": 10})
        assert r.status_code == 422

    @pytest.mark.asyncio
    async def test_show(self, client, world, add_report):
        report = await add_report(world.joes, 60000, wage_period="weekly")
        r = await client.get(f"{URL}/{report.id}")
        assert r.status_code == 200
        body = r.json()
        assert body["wage_period"] == "weekly"
        assert body["amount_cents"] == 60000
        assert body["normalized_hourly_cents"] == 1500

    @pytest.mark.asyncio
    async def test_show_missing(self, client, world):
        r = await client.get(f"{URL}/424242")
        assert r.status_code == 404


# ============================================================
# Moderation transitions
# ============================================================

class TestTransitions:
    @pytest.mark.asyncio
    async def test_approve_then_flag(self, session, world, add_report, stats_service):
        report = await add_report(world.joes, 1500, status="pending")

        await transition_status(session, report, "approved", stats_service)
        await session.refresh(world.joes)
        assert world.joes.wage_reports_count == 1

        await transition_status(session, report, "flagged", stats_service)
        await session.refresh(world.joes)
        await session.refresh(world.org)
        assert report.status == "flagged"
        assert world.joes.wage_reports_count == 0
        assert world.org.wage_reports_count == 0

    @pytest.mark.asyncio
    async def test_rejected_is_final(self, session, world, add_report, stats_service):
        report = await add_report(world.joes, 1500, status="rejected")
        with pytest.raises(InvalidStatusTransition):
            await transition_status(session, report, "approved", stats_service)

    @pytest.mark.asyncio
    async def test_unknown_status(self, session, world, add_report, stats_service):
        report = await add_report(world.joes, 1500, status="pending")
        with pytest.raises(ValueError):
            await transition_status(session, report, "archived", stats_service)

    @pytest.mark.asyncio
    async def test_counter_never_negative(self, session, world, add_report, stats_service):
        # inserted as approved without bumping the counter
        report = await add_report(world.joes, 1500)
        await transition_status(session, report, "flagged", stats_service)
        await session.refresh(world.joes)
        assert world.joes.wage_reports_count == 0
