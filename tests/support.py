"""
Shared fixtures for the test suite: reference element sets and propagator
test doubles that place objects at exact look angles.
"""

import math
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional

import numpy as np

from orbit_visibility.catalog import parse_entry
from orbit_visibility.exceptions import PropagationInvalid
from orbit_visibility.frames import geodetic_to_earth_fixed, inertial_to_earth_fixed, sidereal_angle
from orbit_visibility.models import ObserverLocation, TrackedObject

# ISS TLE data (as of September 2023)
ISS_LINE1 = "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995"
ISS_LINE2 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598"
ISS_NAME = "ISS (ZARYA)"
ISS_EPOCH = datetime(2023, 9, 16, 13, 49, 9, tzinfo=timezone.utc)

# Vanguard 2, Vallado et al. (2006) verification case
VANGUARD_LINE1 = "1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753"
VANGUARD_LINE2 = "2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667"

# Geostationary-like elements (about one revolution per day)
GEO_LINE1 = "1 33333U 08999A   23259.50000000  .00000000  00000-0  00000-0 0  9999"
GEO_LINE2 = "2 33333   0.0000 100.0000 0000100  90.0000 270.0000  1.00273791 99999"

ACCRA = ObserverLocation(latitude_deg=5.6, longitude_deg=-0.19, name="Accra")


def iss() -> TrackedObject:
    return parse_entry(ISS_NAME, ISS_LINE1, ISS_LINE2)


def stub_object(name: str, line2: str = ISS_LINE2) -> TrackedObject:
    """TrackedObject without a propagation handle, for use with test doubles."""
    return TrackedObject(name=name, line1=ISS_LINE1, line2=line2, catalog_number=None)


def earth_fixed_at(
    observer: ObserverLocation, elevation_deg: float, azimuth_deg: float = 0.0, range_km: float = 1000.0
) -> np.ndarray:
    """Earth-fixed point seen from observer at the given look angles."""
    lat = observer.latitude_rad
    lon = observer.longitude_rad
    el = math.radians(elevation_deg)
    az = math.radians(azimuth_deg)

    up = np.array([math.cos(lat) * math.cos(lon), math.cos(lat) * math.sin(lon), math.sin(lat)])
    north = np.array([-math.sin(lat) * math.cos(lon), -math.sin(lat) * math.sin(lon), math.cos(lat)])
    east = np.array([-math.sin(lon), math.cos(lon), 0.0])

    direction = math.cos(el) * (math.cos(az) * north + math.sin(az) * east) + math.sin(el) * up
    site = geodetic_to_earth_fixed(lat, lon, observer.height_km)
    return site + range_km * direction


def to_inertial(earth_fixed: np.ndarray, instant: datetime) -> np.ndarray:
    return inertial_to_earth_fixed(earth_fixed, -sidereal_angle(instant))


class FixedLookPropagator:
    """Places each named object at a fixed elevation/azimuth above observer."""

    def __init__(self, observer: ObserverLocation, elevations: Dict[str, float], failing: Iterable[str] = ()):
        self.observer = observer
        self.elevations = dict(elevations)
        self.failing = set(failing)
        self.calls = 0

    def propagate(self, tracked: TrackedObject, instant: datetime) -> np.ndarray:
        self.calls += 1
        if tracked.name in self.failing:
            raise PropagationInvalid(f"{tracked.name} has decayed", error_code=6, name=tracked.name)
        point = earth_fixed_at(self.observer, self.elevations[tracked.name])
        return to_inertial(point, instant)


class ElevationProfilePropagator:
    """
    Elevation of every object follows profile(instant).

    profile returns None to signal an invalid propagation at that instant.
    """

    def __init__(self, observer: ObserverLocation, profile: Callable[[datetime], Optional[float]]):
        self.observer = observer
        self.profile = profile
        self.calls = 0

    def propagate(self, tracked: TrackedObject, instant: datetime) -> np.ndarray:
        self.calls += 1
        elevation = self.profile(instant)
        if elevation is None:
            raise PropagationInvalid("no solution", error_code=1, name=tracked.name)
        return to_inertial(earth_fixed_at(self.observer, elevation), instant)


class ConstantInertialPropagator:
    """Returns the same inertial position for every instant."""

    def __init__(self, position=(7000.0, 0.0, 0.0), failing_after: Optional[int] = None):
        self.position = np.array(position, dtype=float)
        self.failing_after = failing_after
        self.calls = 0

    def propagate(self, tracked: TrackedObject, instant: datetime) -> np.ndarray:
        self.calls += 1
        if self.failing_after is not None and self.calls > self.failing_after:
            raise PropagationInvalid("decayed", error_code=6, name=tracked.name)
        return self.position.copy()


class FailingPropagator:
    def propagate(self, tracked: TrackedObject, instant: datetime) -> np.ndarray:
        raise PropagationInvalid("decayed", error_code=6, name=tracked.name)
