"""
Value types shared across the engine.

Every model here is frozen: derived results (reports, schedules, paths) are
published by replacing the reference to a new value, never by mutating one
in place. Only the element catalog and the observer location are long-lived.
"""

import math
from datetime import datetime, timedelta
from typing import Any, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from orbit_visibility.config import MINUTES_PER_DAY


class TrackedObject(BaseModel):
    """One catalog entry: raw element set lines plus the propagation handle."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    line1: str
    line2: str
    catalog_number: Optional[int] = None
    handle: Any = Field(default=None, repr=False, exclude=True)

    @property
    def mean_motion_rev_per_day(self) -> float:
        # TLE line 2, columns 53-63
        return float(self.line2[52:63])

    @property
    def mean_motion(self) -> float:
        """Mean motion in rad/min."""
        return self.mean_motion_rev_per_day * 2.0 * math.pi / MINUTES_PER_DAY

    @property
    def period_minutes(self) -> float:
        return 2.0 * math.pi / self.mean_motion


class ObserverLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude_deg: float = Field(ge=-90.0, le=90.0)
    longitude_deg: float
    height_km: float = 0.0
    name: Optional[str] = None

    @property
    def latitude_rad(self) -> float:
        return math.radians(self.latitude_deg)

    @property
    def longitude_rad(self) -> float:
        return math.radians(self.longitude_deg)


class GeodeticPosition(BaseModel):
    """Latitude/longitude in radians, altitude in km above the ellipsoid."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    altitude_km: float

    @property
    def latitude_deg(self) -> float:
        return math.degrees(self.latitude)

    @property
    def longitude_deg(self) -> float:
        return math.degrees(self.longitude)


class LookAngles(BaseModel):
    model_config = ConfigDict(frozen=True)

    azimuth_deg: float
    elevation_deg: float
    range_km: float


class VisibilityEntry(BaseModel):
    """One visible object: its sub-point and how it looks from the observer."""

    model_config = ConfigDict(frozen=True)

    tracked: TrackedObject
    geodetic: GeodeticPosition
    elevation_deg: float
    azimuth_deg: float
    range_km: float


class VisibilityReport(BaseModel):
    """Objects above the elevation threshold at one instant (unordered)."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    min_elevation_deg: float
    entries: Tuple[VisibilityEntry, ...] = ()

    @property
    def count(self) -> int:
        return len(self.entries)

    def names(self) -> List[str]:
        return [entry.tracked.name for entry in self.entries]

    def sorted_by_elevation(self) -> List[VisibilityEntry]:
        return sorted(self.entries, key=lambda entry: entry.elevation_deg, reverse=True)


class Pass(BaseModel):
    """
    One contiguous interval above the elevation threshold.

    truncated is set when the object was still visible at the end of the
    search horizon; end is then the horizon end. in_progress_at_start is set
    when the very first scan step was already above threshold, so start is
    the scan start rather than a true rise time.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    max_elevation_deg: float
    peak_time: datetime
    truncated: bool = False
    in_progress_at_start: bool = False

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class PassSchedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    horizon_start: datetime
    horizon_end: datetime
    step_seconds: float
    min_elevation_deg: float
    passes: Tuple[Pass, ...] = ()
    partial: bool = False

    @property
    def next_pass(self) -> Optional[Pass]:
        return self.passes[0] if self.passes else None

    @property
    def is_empty(self) -> bool:
        return not self.passes


class OrbitPath(BaseModel):
    """
    Display polyline for one orbital period.

    Points are in a normalised Earth-fixed frame: unit length is the mean
    Earth radius and y is the polar axis.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    sampled_at: datetime
    step_seconds: float
    points: Tuple[Tuple[float, float, float], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def closed(self) -> bool:
        return len(self.points) > 1 and self.points[0] == self.points[-1]

    def as_array(self) -> np.ndarray:
        return np.array(self.points, dtype=float).reshape(-1, 3)
