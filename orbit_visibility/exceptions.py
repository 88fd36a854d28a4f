"""
Error taxonomy for the visibility engine.

None of these escape the public operations for per-object data problems:
they are raised at the seams (propagation, frame conversion, element set
parsing) and handled locally by excluding the offending object or entry.
"""

from typing import Optional


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


class OrbitVisibilityError(Exception):
    """Base class for all engine errors."""


class PropagationInvalid(OrbitVisibilityError):
    """An element set yields no usable position at a given instant."""

    def __init__(self, message: str, error_code: Optional[int] = None, name: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code
        self.name = name

    @classmethod
    def from_sgp4(cls, error_code: int, name: Optional[str] = None) -> "PropagationInvalid":
        description = SGP4_ERROR_CODES.get(error_code, f"Unknown error code {error_code}")
        label = name or "object"
        return cls(f"SGP4 error {error_code} for {label}: {description}", error_code, name)


class InvalidPosition(PropagationInvalid, ValueError):
    """Degenerate geometric input to a frame conversion (zero or non-finite vector)."""

    def __init__(self, message: str):
        super().__init__(message)


class MalformedElementSet(OrbitVisibilityError, ValueError):
    """A catalog entry fails the structural two-line element checks."""

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.name = name
