"""
Orbital Visibility & Pass-Prediction Engine

This package answers, for a large catalog of two-line element sets and a
ground observer: which objects are observable right now, when a given object
will next be observable and for how long, and what its orbit looks like over
one full period.

Modules:
    catalog: Element set parsing and the immutable element catalog
    frames: Sidereal angle, TEME/Earth-fixed/geodetic conversion, look angles
    propagation: Propagator capability and the SGP4-backed default
    visibility: Per-instant visibility evaluation
    passes: Fixed-step pass prediction and pass formatting
    orbit_path: One-period orbit polyline for display
    scheduler: Fixed-cadence refresh and on-demand recomputation
    observer: Observer resolution with a default location
    config: Constants and the engine configuration record
    logging_config: Structured logging setup

Propagation itself is delegated to the sgp4 library.
"""

from orbit_visibility.catalog import ElementCatalog, load_catalog, parse_tle_text
from orbit_visibility.config import EngineConfig
from orbit_visibility.exceptions import (
    InvalidPosition,
    MalformedElementSet,
    OrbitVisibilityError,
    PropagationInvalid,
)
from orbit_visibility.models import (
    GeodeticPosition,
    LookAngles,
    ObserverLocation,
    OrbitPath,
    Pass,
    PassSchedule,
    TrackedObject,
    VisibilityReport,
)
from orbit_visibility.orbit_path import sample_path
from orbit_visibility.passes import predict
from orbit_visibility.propagation import Propagator, SGP4Propagator
from orbit_visibility.scheduler import RefreshScheduler, cap_catalog
from orbit_visibility.visibility import evaluate

__version__ = "1.0.0"

__all__ = [
    "ElementCatalog",
    "EngineConfig",
    "GeodeticPosition",
    "InvalidPosition",
    "LookAngles",
    "MalformedElementSet",
    "ObserverLocation",
    "OrbitPath",
    "OrbitVisibilityError",
    "Pass",
    "PassSchedule",
    "PropagationInvalid",
    "Propagator",
    "RefreshScheduler",
    "SGP4Propagator",
    "TrackedObject",
    "VisibilityReport",
    "cap_catalog",
    "evaluate",
    "load_catalog",
    "parse_tle_text",
    "predict",
    "sample_path",
]
