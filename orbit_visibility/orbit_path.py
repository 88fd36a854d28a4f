"""
Orbit Path Sampler

Samples one full orbital period of an object for the trajectory overlay. The
step scales with the period so every path holds a bounded, roughly constant
number of points whatever the orbit.

The Earth rotation angle is frozen at the sampling instant for every sample,
so the result is the orbit drawn as a clean closed ellipse in the current
Earth-fixed frame rather than a time-accurate ground track.
"""

import math
from datetime import datetime, timedelta
from typing import Optional, Tuple

from orbit_visibility.config import (
    COARSE_PATH_STEP_SECONDS,
    DEFAULT_PATH_STEP_SECONDS,
    LONG_PERIOD_THRESHOLD_MINUTES,
    MEAN_EARTH_RADIUS_KM,
    PATH_TARGET_SAMPLES,
)
from orbit_visibility.exceptions import PropagationInvalid
from orbit_visibility.frames import inertial_to_geodetic, sidereal_angle, to_utc
from orbit_visibility.logging_config import get_logger
from orbit_visibility.models import GeodeticPosition, OrbitPath, TrackedObject
from orbit_visibility.propagation import DEFAULT_PROPAGATOR, Propagator

logger = get_logger(__name__)

Point = Tuple[float, float, float]


def path_step_seconds(
    period_minutes: float,
    fine_step_seconds: float = DEFAULT_PATH_STEP_SECONDS,
    target_samples: int = PATH_TARGET_SAMPLES,
) -> float:
    """
    Sampling step giving about target_samples points per period.

    Never finer than fine_step_seconds; periods over
    LONG_PERIOD_THRESHOLD_MINUTES never go below the coarse step.
    """
    step = max(fine_step_seconds, period_minutes * 60.0 / target_samples)
    if period_minutes > LONG_PERIOD_THRESHOLD_MINUTES:
        step = max(step, COARSE_PATH_STEP_SECONDS)
    return step


def to_display_point(position: GeodeticPosition) -> Point:
    """Normalised Cartesian point (unit = mean Earth radius, y = polar axis)."""
    radius = 1.0 + position.altitude_km / MEAN_EARTH_RADIUS_KM
    cos_lat = math.cos(position.latitude)

    x = radius * cos_lat * math.cos(position.longitude)
    y = radius * math.sin(position.latitude)
    z = radius * cos_lat * math.sin(position.longitude)
    return (x, y, -z)


def sample_path(
    tracked: TrackedObject,
    at_time: datetime,
    propagator: Optional[Propagator] = None,
    step_seconds: Optional[float] = None,
) -> OrbitPath:
    """
    Closed polyline covering one orbital period starting at at_time.

    Args:
        tracked: Object to sample
        at_time: Sampling instant; the Earth rotation angle is frozen here
        propagator: Propagation capability (default: SGP4)
        step_seconds: Finest sampling step; longer periods get a wider step
            so the path stays near PATH_TARGET_SAMPLES points

    Returns:
        OrbitPath; empty when no sample could be propagated
    """
    propagator = propagator or DEFAULT_PROPAGATOR
    at_time = to_utc(at_time)
    fine_step = step_seconds or DEFAULT_PATH_STEP_SECONDS

    try:
        period_minutes = tracked.period_minutes
    except (ValueError, ZeroDivisionError) as e:
        logger.warning("orbit_period_unavailable", name=tracked.name, reason=str(e))
        return OrbitPath(name=tracked.name, sampled_at=at_time, step_seconds=fine_step)

    if not math.isfinite(period_minutes) or period_minutes <= 0:
        logger.warning("orbit_period_unavailable", name=tracked.name, period=period_minutes)
        return OrbitPath(name=tracked.name, sampled_at=at_time, step_seconds=fine_step)

    step = path_step_seconds(period_minutes, fine_step)
    angle = sidereal_angle(at_time)
    period_seconds = period_minutes * 60.0

    points = []
    skipped = 0
    i = 0
    while i * step <= period_seconds:
        sample_time = at_time + timedelta(seconds=i * step)
        i += 1
        try:
            position = propagator.propagate(tracked, sample_time)
            geodetic = inertial_to_geodetic(position, angle)
        except PropagationInvalid:
            skipped += 1
            continue
        points.append(to_display_point(geodetic))

    if points:
        points.append(points[0])

    logger.debug(
        "orbit_path_sampled",
        name=tracked.name,
        period_minutes=round(period_minutes, 2),
        step_seconds=step,
        points=len(points),
        skipped=skipped,
    )
    return OrbitPath(
        name=tracked.name,
        sampled_at=at_time,
        step_seconds=step,
        points=tuple(points),
    )
