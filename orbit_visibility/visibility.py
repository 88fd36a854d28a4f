"""
Visibility Evaluator

Classifies every tracked object against one observer at one instant. An
object whose propagation fails (decayed orbit, SGP4 error, degenerate
position) is left out of the report; it never stops the rest of the catalog
from being evaluated.
"""

from datetime import datetime
from typing import Iterable, Optional, Tuple

from orbit_visibility.config import DEFAULT_MIN_ELEVATION_DEG
from orbit_visibility.exceptions import PropagationInvalid
from orbit_visibility.frames import (
    earth_fixed_to_geodetic,
    inertial_to_earth_fixed,
    look_angles,
    sidereal_angle,
    to_utc,
)
from orbit_visibility.logging_config import get_logger
from orbit_visibility.models import (
    GeodeticPosition,
    LookAngles,
    ObserverLocation,
    TrackedObject,
    VisibilityEntry,
    VisibilityReport,
)
from orbit_visibility.propagation import DEFAULT_PROPAGATOR, Propagator

logger = get_logger(__name__)


def observe(
    tracked: TrackedObject,
    observer: ObserverLocation,
    instant: datetime,
    propagator: Optional[Propagator] = None,
    angle: Optional[float] = None,
) -> LookAngles:
    """
    Look angles of one object from observer at instant.

    Args:
        angle: Precomputed sidereal angle for instant, shared across a batch

    Raises:
        PropagationInvalid: propagation failed or produced a degenerate position
    """
    propagator = propagator or DEFAULT_PROPAGATOR
    if angle is None:
        angle = sidereal_angle(instant)

    position = propagator.propagate(tracked, instant)
    return look_angles(observer, inertial_to_earth_fixed(position, angle))


def locate(
    tracked: TrackedObject,
    observer: ObserverLocation,
    instant: datetime,
    propagator: Optional[Propagator] = None,
    angle: Optional[float] = None,
) -> Tuple[GeodeticPosition, LookAngles]:
    """
    Geodetic sub-point and look angles of one object from a single propagation.

    Raises:
        PropagationInvalid: propagation failed or produced a degenerate position
    """
    propagator = propagator or DEFAULT_PROPAGATOR
    if angle is None:
        angle = sidereal_angle(instant)

    earth_fixed = inertial_to_earth_fixed(propagator.propagate(tracked, instant), angle)
    return earth_fixed_to_geodetic(earth_fixed), look_angles(observer, earth_fixed)


def evaluate(
    catalog: Iterable[TrackedObject],
    observer: ObserverLocation,
    instant: datetime,
    min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
    propagator: Optional[Propagator] = None,
) -> VisibilityReport:
    """
    Objects strictly above min_elevation_deg as seen from observer at instant.

    Args:
        catalog: ElementCatalog or any iterable of TrackedObjects
        observer: Ground location
        instant: Evaluation time (naive values are taken as UTC)
        min_elevation_deg: Threshold; an object exactly at it is not visible
        propagator: Propagation capability (default: SGP4)

    Returns:
        VisibilityReport with one entry (geodetic sub-point plus look angles)
        per visible object, in no particular order
    """
    instant = to_utc(instant)
    propagator = propagator or DEFAULT_PROPAGATOR
    angle = sidereal_angle(instant)

    entries = []
    excluded = 0
    for tracked in catalog:
        try:
            geodetic, angles = locate(tracked, observer, instant, propagator, angle)
        except PropagationInvalid as e:
            excluded += 1
            logger.debug("object_excluded", name=tracked.name, reason=str(e))
            continue

        if angles.elevation_deg > min_elevation_deg:
            entries.append(
                VisibilityEntry(
                    tracked=tracked,
                    geodetic=geodetic,
                    elevation_deg=angles.elevation_deg,
                    azimuth_deg=angles.azimuth_deg,
                    range_km=angles.range_km,
                )
            )

    logger.debug(
        "visibility_evaluated",
        instant=instant.isoformat(),
        visible=len(entries),
        excluded=excluded,
    )
    return VisibilityReport(
        timestamp=instant,
        min_elevation_deg=min_elevation_deg,
        entries=tuple(entries),
    )
