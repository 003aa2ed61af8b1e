# wdtp/core/errors.py
"""Error types raised by the search, gateway and wage services."""


class WageNormalizationError(ValueError):
    """A reported wage could not be turned into an hourly rate."""


class InvalidPeriod(WageNormalizationError):
    def __init__(self, period: str):
        self.period = period
        super().__init__(f"Invalid wage period: {period!r}")


class OutOfRange(WageNormalizationError):
    def __init__(self, hourly_cents: int, min_cents: int, max_cents: int):
        self.hourly_cents = hourly_cents
        self.min_cents = min_cents
        self.max_cents = max_cents
        super().__init__(
            f"Normalized hourly wage ({hourly_cents} cents) is outside "
            f"acceptable range [{min_cents}, {max_cents}]"
        )


class InvalidCoordinates(ValueError):
    def __init__(self, lat, lon):
        self.lat = lat
        self.lon = lon
        super().__init__(
            f"Invalid coordinates ({lat}, {lon}): latitude must be between -90 and 90, "
            "longitude between -180 and 180"
        )


class GatewayError(Exception):
    """The external POI provider could not answer."""


class GatewayTimeout(GatewayError):
    pass


class GatewayHTTPError(GatewayError):
    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"POI provider returned HTTP {status_code}")


class GatewayMalformedResponse(GatewayError):
    pass


class NotFound(LookupError):
    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidStatusTransition(ValueError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move wage report from {current!r} to {target!r}")
