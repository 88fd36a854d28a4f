"""Observer location resolution with a caller-supplied default."""

from typing import Optional, Protocol

from orbit_visibility.config import (
    DEFAULT_OBSERVER_LATITUDE,
    DEFAULT_OBSERVER_LONGITUDE,
    DEFAULT_OBSERVER_NAME,
)
from orbit_visibility.logging_config import get_logger
from orbit_visibility.models import ObserverLocation

logger = get_logger(__name__)

DEFAULT_OBSERVER = ObserverLocation(
    latitude_deg=DEFAULT_OBSERVER_LATITUDE,
    longitude_deg=DEFAULT_OBSERVER_LONGITUDE,
    name=DEFAULT_OBSERVER_NAME,
)


class GeolocationSource(Protocol):
    def locate(self) -> ObserverLocation:
        ...


def resolve_observer(
    source: Optional[GeolocationSource], default: ObserverLocation = DEFAULT_OBSERVER
) -> ObserverLocation:
    """Ask the geolocation source for a location; use default on any failure."""
    if source is None:
        logger.info("geolocation_unavailable", using=default.name)
        return default

    try:
        location = source.locate()
    except Exception as e:
        logger.warning("geolocation_failed", error=str(e), using=default.name)
        return default

    if location is None:
        logger.warning("geolocation_empty", using=default.name)
        return default
    return location
