"""
Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database (aiosqlite, one shared
connection through StaticPool) and a fresh statistics cache. External HTTP
is never reached: the Overpass gateway is disabled unless a test swaps in
one backed by httpx.MockTransport.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("OVERPASS_ENABLED", "false")

from types import SimpleNamespace  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from wdtp.db import Base, get_db  # noqa: E402
from wdtp.dependencies import get_gateway, get_stats_service  # noqa: E402
from wdtp.main import app  # noqa: E402
from wdtp.models.location import Location  # noqa: E402
from wdtp.models.organization import Organization  # noqa: E402
from wdtp.models.wage_report import WageReport  # noqa: E402
from wdtp.services.cache import MemoryCache  # noqa: E402
from wdtp.services.overpass import OverpassGateway  # noqa: E402
from wdtp.services.statistics import WageStatisticsService  # noqa: E402

# Lower Manhattan; search centre for most tests
NYC_LAT, NYC_LNG = 40.7128, -74.0060


# ============================================================
# Database
# ============================================================


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


# ============================================================
# Seed data
# ============================================================


@pytest_asyncio.fixture
async def world(session):
    """
    One organization with two locations, plus independents:

    joes    at the search centre           (org)
    diner   ~1 km north-east
    palace  ~8.4 km south-east, Brooklyn   (org)
    philly  ~130 km away
    closed  next to joes but inactive
    """
    org = Organization(name="Joe's Coffee Co", slug="joes-coffee-co")
    session.add(org)
    await session.flush()

    joes = Location(
        name="Joe's Coffee", slug="joes-main-st", address_line_1="1 Main St",
        city="New York", state_province="NY", latitude=NYC_LAT, longitude=NYC_LNG,
        organization_id=org.id,
    )
    diner = Location(
        name="Main Street Diner", address_line_1="200 Broadway",
        city="New York", state_province="NY", latitude=40.7200, longitude=-74.0000,
    )
    palace = Location(
        name="Coffee Palace", address_line_1="5 Ocean Ave",
        city="Brooklyn", state_province="NY", latitude=40.6500, longitude=-73.9500,
        organization_id=org.id,
    )
    philly = Location(
        name="Philly Coffee House", address_line_1="10 Market St",
        city="Philadelphia", state_province="PA", latitude=39.9526, longitude=-75.1652,
    )
    closed = Location(
        name="Closed Coffee", address_line_1="2 Main St",
        city="New York", state_province="NY", latitude=40.7130, longitude=-74.0062,
        is_active=False,
    )
    session.add_all([joes, diner, palace, philly, closed])
    await session.commit()
    return SimpleNamespace(org=org, joes=joes, diner=diner, palace=palace, philly=philly, closed=closed)


@pytest.fixture
def add_report(session):
    """Insert a wage report directly (no sanity scoring, counters untouched)."""

    async def _add(location, cents=1500, status="approved", **kwargs):
        fields = {
            "job_title": "Barista",
            "wage_period": "hourly",
            "amount_cents": cents,
            "employment_type": "full_time",
        }
        fields.update(kwargs)
        report = WageReport(
            location_id=location.id,
            organization_id=location.organization_id,
            status=status,
            **fields,
        )
        session.add(report)
        await session.commit()
        return report

    return _add


# ============================================================
# Services and HTTP client
# ============================================================


@pytest.fixture
def stats_service():
    return WageStatisticsService(MemoryCache(maxsize=128, ttl=900), ttl=900)


@pytest_asyncio.fixture
async def client(session_factory, stats_service):
    async def _get_db():
        async with session_factory() as s:
            yield s

    disabled_gateway = OverpassGateway(enabled=False)
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_stats_service] = lambda: stats_service
    app.dependency_overrides[get_gateway] = lambda: disabled_gateway

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def use_gateway(gateway: OverpassGateway) -> None:
    """Route searches made through the test client to ``gateway``."""
    app.dependency_overrides[get_gateway] = lambda: gateway


@pytest.fixture
def gateway_with(client):
    """Install an enabled gateway whose HTTP traffic goes to ``handler``."""

    def _make(handler):
        gateway = OverpassGateway(
            base_url="https://overpass.test/api/interpreter",
            timeout=5.0,
            enabled=True,
            transport=httpx.MockTransport(handler),
        )
        use_gateway(gateway)
        return gateway

    return _make
