"""Shared service instances handed to routes through FastAPI dependencies."""
from .core.config import settings
from .services.cache import MemoryCache
from .services.overpass import OverpassGateway
from .services.statistics import WageStatisticsService

stats_cache = MemoryCache(maxsize=settings.stats_cache_maxsize, ttl=settings.stats_cache_ttl)
stats_service = WageStatisticsService(stats_cache, ttl=settings.stats_cache_ttl)
overpass_gateway = OverpassGateway()


def get_stats_service() -> WageStatisticsService:
    return stats_service


def get_gateway() -> OverpassGateway:
    return overpass_gateway
