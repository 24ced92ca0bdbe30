from typing import NamedTuple, Protocol
from app.core.config import DEFAULT_TIME_ZONE


class GeoLocation(NamedTuple):
    latitude: str | None
    longitude: str | None
    time_zone: str


class LocationResolver(Protocol):
    def resolve(self, address: str) -> GeoLocation:
        ...


class StaticLocationResolver:
    """Resolver used when no geocoding backend is configured: no coordinates, fixed timezone."""

    def __init__(self, time_zone: str = DEFAULT_TIME_ZONE) -> None:
        self.time_zone = time_zone

    def resolve(self, address: str) -> GeoLocation:
        return GeoLocation(latitude=None, longitude=None, time_zone=self.time_zone)
