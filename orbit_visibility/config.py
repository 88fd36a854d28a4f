"""
Engine Configuration and Constants

This module contains the physical constants, default thresholds and the
engine configuration record used throughout the package.

Constants:
    WGS-84 ellipsoid parameters for geodetic conversion, plus the mean Earth
    radius used to normalise display geometry.

Configuration:
    EngineConfig is a single immutable record describing how much work the
    engine does per refresh. Device capability (mobile vs desktop) is
    expressed as configuration via EngineConfig.for_platform, never as a
    separate code path.

    Values can be overridden from the environment:
    - ORBIT_VIS_MAX_TRACKED_OBJECTS: object cap fed to each refresh (0 = none)
    - ORBIT_VIS_CADENCE_MS: fixed visibility refresh cadence
    - ORBIT_VIS_PATH_STEP_SECONDS: orbit path sampling step
    - ORBIT_VIS_MIN_ELEVATION_DEG: visibility threshold
    - ORBIT_VIS_PASS_STEP_SECONDS: pass search step
    - ORBIT_VIS_PASS_HORIZON_HOURS: pass search horizon
    - ORBIT_VIS_CATALOG_LIMIT: maximum objects kept at catalog load (0 = none)
"""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# WGS-84 ellipsoid (geodetic conversion, observer position)
WGS84_A_KM: float = 6378.137  # equatorial radius (km)
WGS84_F: float = 1.0 / 298.257223563  # flattening
WGS84_E2: float = WGS84_F * (2.0 - WGS84_F)  # first eccentricity squared

# Mean Earth radius used to normalise display geometry (km)
MEAN_EARTH_RADIUS_KM: float = 6371.0

MINUTES_PER_DAY: float = 1440.0
SIDEREAL_DAY_SECONDS: float = 86164.0905

# Visibility and pass search defaults
DEFAULT_MIN_ELEVATION_DEG: float = 10.0
DEFAULT_PASS_STEP_SECONDS: float = 60.0
DEFAULT_PASS_HORIZON_HOURS: float = 24.0

# Orbit path sampling: about one sample per degree of mean anomaly, never
# finer than the fine step, never finer than the coarse step for long periods
PATH_TARGET_SAMPLES: int = 360
DEFAULT_PATH_STEP_SECONDS: float = 30.0
COARSE_PATH_STEP_SECONDS: float = 300.0
LONG_PERIOD_THRESHOLD_MINUTES: float = 1000.0

# Refresh cadence and object caps
DEFAULT_CADENCE_MS: int = 2000
MOBILE_MAX_TRACKED_OBJECTS: int = 1000
DEFAULT_CATALOG_LIMIT: int = 2000

# Observer used when geolocation is unavailable
DEFAULT_OBSERVER_LATITUDE: float = 5.6037
DEFAULT_OBSERVER_LONGITUDE: float = -0.1870
DEFAULT_OBSERVER_NAME: str = "Accra, Ghana (default)"


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = int(raw)
    return value if value > 0 else None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


class EngineConfig(BaseModel):
    """Per-platform tuning of the visibility engine.

    max_tracked_objects caps the catalog slice fed to each visibility refresh
    (None means no cap). fixed_cadence_ms is the visibility refresh period.
    path_step_seconds is the finest orbit path sampling step; the step grows
    with the period so a path holds about PATH_TARGET_SAMPLES points.
    """

    model_config = ConfigDict(frozen=True)

    max_tracked_objects: Optional[int] = Field(default=None, gt=0)
    fixed_cadence_ms: int = Field(default=DEFAULT_CADENCE_MS, gt=0)
    path_step_seconds: float = Field(default=DEFAULT_PATH_STEP_SECONDS, gt=0)
    min_elevation_deg: float = Field(default=DEFAULT_MIN_ELEVATION_DEG, ge=-90.0, le=90.0)
    pass_step_seconds: float = Field(default=DEFAULT_PASS_STEP_SECONDS, gt=0)
    pass_horizon_hours: float = Field(default=DEFAULT_PASS_HORIZON_HOURS, gt=0)
    catalog_limit: Optional[int] = Field(default=DEFAULT_CATALOG_LIMIT, gt=0)

    @property
    def cadence_seconds(self) -> float:
        return self.fixed_cadence_ms / 1000.0

    @classmethod
    def for_platform(cls, mobile: bool, **overrides) -> "EngineConfig":
        """Build the configuration for a device capability flag."""
        settings = {
            "max_tracked_objects": MOBILE_MAX_TRACKED_OBJECTS if mobile else None,
        }
        settings.update(overrides)
        return cls(**settings)

    @classmethod
    def from_env(cls, mobile: bool = False) -> "EngineConfig":
        """Build the configuration from ORBIT_VIS_* environment variables."""
        base = cls.for_platform(mobile)
        return cls(
            max_tracked_objects=_env_int(
                "ORBIT_VIS_MAX_TRACKED_OBJECTS", base.max_tracked_objects
            ),
            fixed_cadence_ms=int(
                _env_float("ORBIT_VIS_CADENCE_MS", base.fixed_cadence_ms)
            ),
            path_step_seconds=_env_float(
                "ORBIT_VIS_PATH_STEP_SECONDS", base.path_step_seconds
            ),
            min_elevation_deg=_env_float(
                "ORBIT_VIS_MIN_ELEVATION_DEG", base.min_elevation_deg
            ),
            pass_step_seconds=_env_float(
                "ORBIT_VIS_PASS_STEP_SECONDS", base.pass_step_seconds
            ),
            pass_horizon_hours=_env_float(
                "ORBIT_VIS_PASS_HORIZON_HOURS", base.pass_horizon_hours
            ),
            catalog_limit=_env_int("ORBIT_VIS_CATALOG_LIMIT", base.catalog_limit),
        )
