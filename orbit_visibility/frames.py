"""
Frame Converter

Stateless conversions between the frames the engine works in:

- TEME (the inertial frame SGP4 propagates in) to Earth-fixed, by rotating
  about the polar axis through the Greenwich mean sidereal angle
- Earth-fixed to WGS-84 geodetic latitude/longitude/altitude
- Observer-relative look angles (azimuth, elevation, slant range) using the
  topocentric South-East-Zenith horizon frame

All angles inside this module are radians unless a name says _deg. Positions
are kilometres.

References:
    Vallado, D. A. (2013). Fundamentals of Astrodynamics and Applications (4th ed.),
    Algorithms 13 (ECEF to lat/lon), 27 (site track) and eq. 3-47 (GMST).
"""

import math
from datetime import datetime, timezone
from typing import Tuple

import numpy as np
from sgp4.api import jday

from orbit_visibility.config import WGS84_A_KM, WGS84_E2, WGS84_F
from orbit_visibility.exceptions import InvalidPosition
from orbit_visibility.models import GeodeticPosition, LookAngles, ObserverLocation

TWO_PI = 2.0 * math.pi


def to_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime; naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def julian_date(dt: datetime) -> Tuple[float, float]:
    """
    Convert datetime to Julian date and fraction.

    Args:
        dt: Datetime object (naive values are taken as UTC)

    Returns:
        Tuple of (julian_day, fraction) as expected by Satrec.sgp4
    """
    dt = to_utc(dt)
    seconds = dt.second + dt.microsecond / 1e6
    return jday(dt.year, dt.month, dt.day, dt.hour, dt.minute, seconds)


def sidereal_angle(dt: datetime) -> float:
    """
    Greenwich mean sidereal angle at dt, in radians within [0, 2*pi).

    The angle advances by a full turn every sidereal day (~23h56m04s), not
    every 24 hours.
    """
    jd, fr = julian_date(dt)
    T = (jd - 2451545.0 + fr) / 36525.0

    gmst_sec = (
        67310.54841
        + (876600.0 * 3600.0 + 8640184.812866) * T
        + 0.093104 * T * T
        - 6.2e-6 * T * T * T
    )

    return (gmst_sec % 86400.0) * (TWO_PI / 86400.0)


def inertial_to_earth_fixed(position: np.ndarray, angle: float) -> np.ndarray:
    """Rotate an inertial position about the polar axis by -angle."""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    x, y, z = position

    return np.array([
        cos_a * x + sin_a * y,
        -sin_a * x + cos_a * y,
        z,
    ])


def _check_position(position: np.ndarray) -> np.ndarray:
    vector = np.asarray(position, dtype=float)
    if vector.shape != (3,) or not np.all(np.isfinite(vector)):
        raise InvalidPosition(f"Position must be a finite 3-vector, got {position!r}")
    if not np.any(vector):
        raise InvalidPosition("Position is the zero vector")
    return vector


def earth_fixed_to_geodetic(position: np.ndarray) -> GeodeticPosition:
    """
    Earth-fixed to WGS-84 geodetic conversion (Bowring estimate, iteratively refined).

    Args:
        position: Earth-fixed position [x, y, z] (km)

    Returns:
        GeodeticPosition with latitude/longitude in radians, altitude in km

    Raises:
        InvalidPosition: for a zero or non-finite vector
    """
    x, y, z = _check_position(position)

    a = WGS84_A_KM
    b = a * (1.0 - WGS84_F)
    e2 = WGS84_E2
    ep2 = e2 / (1.0 - e2)

    lon = math.atan2(y, x)
    p = math.sqrt(x * x + y * y)

    # Pole
    if p < 1e-10:
        lat = math.pi / 2.0 if z > 0 else -math.pi / 2.0
        return GeodeticPosition(latitude=lat, longitude=lon, altitude_km=abs(z) - b)

    # Bowring's estimate from the parametric latitude
    beta = math.atan2(z * a, p * b)
    lat = math.atan2(
        z + ep2 * b * math.sin(beta) ** 3,
        p - e2 * a * math.cos(beta) ** 3,
    )

    # Refine: tan(lat) = (z + e2 * N * sin(lat)) / p holds exactly at any height
    for _ in range(20):
        sin_lat = math.sin(lat)
        N = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
        new_lat = math.atan2(z + e2 * N * sin_lat, p)
        if abs(new_lat - lat) < 1e-13:
            lat = new_lat
            break
        lat = new_lat

    cos_lat = math.cos(lat)
    sin_lat = math.sin(lat)
    N = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)

    if cos_lat > 1e-10:
        alt = p / cos_lat - N
    else:
        alt = z / sin_lat - N * (1.0 - e2)

    return GeodeticPosition(latitude=lat, longitude=lon, altitude_km=alt)


def inertial_to_geodetic(position: np.ndarray, angle: float) -> GeodeticPosition:
    return earth_fixed_to_geodetic(inertial_to_earth_fixed(position, angle))


def geodetic_to_earth_fixed(lat: float, lon: float, alt_km: float) -> np.ndarray:
    """Convert geodetic (rad, rad, km) to an Earth-fixed position (km)."""
    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    N = WGS84_A_KM / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)

    return np.array([
        (N + alt_km) * cos_lat * math.cos(lon),
        (N + alt_km) * cos_lat * math.sin(lon),
        (N * (1.0 - WGS84_E2) + alt_km) * sin_lat,
    ])


def look_angles(observer: ObserverLocation, position: np.ndarray) -> LookAngles:
    """
    Azimuth/elevation/range of an Earth-fixed target seen from observer.

    The range vector is rotated into the observer's South-East-Zenith frame;
    elevation is asin(zenith / range) and azimuth is measured clockwise from
    north.
    """
    target = _check_position(position)

    lat = observer.latitude_rad
    lon = observer.longitude_rad
    site = geodetic_to_earth_fixed(lat, lon, observer.height_km)

    dx, dy, dz = target - site
    range_km = math.sqrt(dx * dx + dy * dy + dz * dz)
    if range_km == 0.0:
        raise InvalidPosition("Target coincides with the observer")

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    sin_lon = math.sin(lon)
    cos_lon = math.cos(lon)

    south = sin_lat * cos_lon * dx + sin_lat * sin_lon * dy - cos_lat * dz
    east = -sin_lon * dx + cos_lon * dy
    zenith = cos_lat * cos_lon * dx + cos_lat * sin_lon * dy + sin_lat * dz

    elevation = math.asin(max(-1.0, min(1.0, zenith / range_km)))
    azimuth = math.atan2(east, -south) % TWO_PI

    return LookAngles(
        azimuth_deg=math.degrees(azimuth),
        elevation_deg=math.degrees(elevation),
        range_km=range_km,
    )
