"""
Propagation capability.

The engine never calls SGP4 directly: it depends on a single-method
Propagator capability, so alternative propagators (different element set
epochs, test doubles returning fixed positions) can be swapped in without
touching visibility, pass or path logic.

SGP4Propagator is the default implementation, backed by the proven sgp4
library. Its per-object handle is the Satrec built when the catalog is
loaded.
"""

from datetime import datetime
from typing import Protocol

import numpy as np
from sgp4.api import Satrec

from orbit_visibility.exceptions import PropagationInvalid
from orbit_visibility.frames import julian_date
from orbit_visibility.models import TrackedObject


class Propagator(Protocol):
    def propagate(self, tracked: TrackedObject, instant: datetime) -> np.ndarray:
        """Return the TEME position (km) at instant or raise PropagationInvalid."""
        ...


def build_handle(line1: str, line2: str) -> Satrec:
    """Parse an element set into the Satrec used as the propagation handle."""
    return Satrec.twoline2rv(line1, line2)


class SGP4Propagator:
    """Propagator backed by sgp4.api.Satrec."""

    def propagate(self, tracked: TrackedObject, instant: datetime) -> np.ndarray:
        satellite = tracked.handle
        if satellite is None:
            satellite = build_handle(tracked.line1, tracked.line2)

        jd, fr = julian_date(instant)
        error, position, _velocity = satellite.sgp4(jd, fr)

        if error != 0:
            raise PropagationInvalid.from_sgp4(error, tracked.name)

        r = np.array(position)
        if not np.all(np.isfinite(r)):
            raise PropagationInvalid(
                f"SGP4 returned a non-finite position for {tracked.name}", name=tracked.name
            )
        return r


DEFAULT_PROPAGATOR = SGP4Propagator()
