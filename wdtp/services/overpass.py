# wdtp/services/overpass.py
"""
OpenStreetMap POI lookup through the Overpass API.

A query that is a known category keyword ("restaurant", "shop", ...) becomes
a tag filter; anything else becomes a case-insensitive name regex. Both look
at nodes and ways within the radius and ask for way centres, so every result
can be reduced to a single point.

Failures are raised, not swallowed: GatewayTimeout, GatewayHTTPError and
GatewayMalformedResponse let the caller decide between internal-only results
and failing the request. No retries here.
"""
import logging
from typing import Any, Optional

import httpx

from ..core.config import settings
from ..core.errors import GatewayError, GatewayHTTPError, GatewayMalformedResponse, GatewayTimeout
from ..schemas.osm import OsmLocation
from ..utils.http import post_form
from .spatial import distance_meters, validate_coordinates

logger = logging.getLogger(__name__)

CATEGORY_TAGS: dict[str, dict[str, str]] = {
    "restaurant": {"amenity": "restaurant"},
    "cafe": {"amenity": "cafe"},
    "coffee": {"amenity": "cafe"},
    "retail": {"shop": "*"},
    "store": {"shop": "*"},
    "shop": {"shop": "*"},
    "healthcare": {"amenity": "hospital"},
    "hospital": {"amenity": "hospital"},
    "clinic": {"amenity": "clinic"},
    "pharmacy": {"amenity": "pharmacy"},
}

_REGEX_SPECIALS = set(".^$*+?()[]{}|\\")


def detect_category(query: str) -> Optional[str]:
    normalized = query.strip().lower()
    return normalized if normalized in CATEGORY_TAGS else None


def tag_filter(category: str) -> str:
    parts = []
    for key, value in CATEGORY_TAGS[category].items():
        parts.append(f"[{key}]" if value == "*" else f"[{key}={value}]")
    return "".join(parts)


def name_filter(query: str) -> str:
    regex = "".join("\\" + ch if ch in _REGEX_SPECIALS else ch for ch in query.strip())
    # Overpass QL string literal: escape backslashes and quotes
    literal = regex.replace("\\", "\\\\").replace('"', '\\"')
    return f'["name"~"{literal}",i]'


def build_query(query: str, lat: float, lon: float, radius_km: float, server_timeout: int = 10) -> str:
    radius_m = int(radius_km * 1000)
    category = detect_category(query)
    selector = tag_filter(category) if category else name_filter(query)
    around = f"(around:{radius_m},{lat:.7f},{lon:.7f})"
    return (
        f"[timeout:{server_timeout}][out:json];\n"
        "(\n"
        f"  node{selector}{around};\n"
        f"  way{selector}{around};\n"
        ");\n"
        "out center;"
    )


def parse_elements(payload: dict[str, Any], lat: float, lon: float) -> list[OsmLocation]:
    """
    Elements without a name tag or without coordinates (own lat/lon for nodes,
    ``center`` for ways) are dropped.
    """
    elements = payload.get("elements") or []
    if not isinstance(elements, list):
        raise GatewayMalformedResponse("Overpass \"elements\" is not a list")

    results: list[OsmLocation] = []
    for element in elements:
        if not isinstance(element, dict):
            continue
        tags = element.get("tags") or {}
        name = tags.get("name") if isinstance(tags, dict) else None
        if not name:
            continue

        el_lat, el_lon = element.get("lat"), element.get("lon")
        if el_lat is None or el_lon is None:
            center = element.get("center")
            if not isinstance(center, dict):
                continue
            el_lat, el_lon = center.get("lat"), center.get("lon")
        if el_lat is None or el_lon is None:
            continue

        el_type = element.get("type")
        if el_type not in ("node", "way", "relation") or element.get("id") is None:
            continue

        try:
            poi = OsmLocation(
                osm_id=f"{el_type}/{element['id']}",
                osm_type=el_type,
                name=str(name),
                latitude=float(el_lat),
                longitude=float(el_lon),
                tags=tags,
            )
        except (TypeError, ValueError):
            # non-numeric or out-of-range coordinates
            logger.debug(f"Skipping Overpass element {el_type}/{element.get('id')}: bad coordinates")
            continue
        results.append(poi.with_distance(distance_meters(lat, lon, poi.latitude, poi.longitude)))
    return results


class OverpassGateway:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        enabled: bool | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.overpass_base_url
        self.timeout = settings.overpass_timeout if timeout is None else timeout
        self.enabled = settings.overpass_enabled if enabled is None else enabled
        self.transport = transport

    async def search(self, query: str, lat: float, lon: float, radius_km: float) -> list[OsmLocation]:
        if not self.enabled:
            return []
        lat, lon = validate_coordinates(lat, lon)
        if not query or not query.strip():
            return []

        ql = build_query(query, lat, lon, radius_km, server_timeout=int(self.timeout))
        try:
            response = await post_form(self.base_url, {"data": ql}, timeout=self.timeout, transport=self.transport)
        except httpx.TimeoutException as e:
            raise GatewayTimeout(f"Overpass request timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise GatewayHTTPError(e.response.status_code) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Overpass request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise GatewayMalformedResponse("Overpass returned a non-JSON body") from e
        if not isinstance(payload, dict):
            raise GatewayMalformedResponse("Overpass returned JSON that is not an object")

        results = parse_elements(payload, lat, lon)
        logger.debug(f"Overpass returned {len(results)} usable POIs for {query!r}")
        return results
