"""
Pass Predictor

Finds the intervals during which one object is above the elevation threshold
for one observer, by walking time in fixed steps from the start of the search
horizon and classifying each step.

Scan rules:
- not visible -> visible opens a pass at the current step
- while visible the peak elevation (and its time) is tracked
- visible -> not visible closes the pass at the current step
- a pass still open when the horizon is exhausted is closed at the horizon
  end and marked truncated
- a step whose propagation fails is skipped and leaves the scan state as is

Boundary policy: the scan always starts in the not-visible state, so a pass
already under way at the start time is never back-dated. If the first step is
above threshold the pass opens at the start time and is marked
in_progress_at_start.

Step size is a cost/accuracy tradeoff: pass start and end are quantised to
the step, and a pass shorter than about one step can fall between two samples
and be missed entirely.

The numeric PassSchedule is kept separate from its presentation
(format_duration, summarize_next_pass).
"""

import time
from datetime import datetime, timedelta
from typing import Dict, Optional

from orbit_visibility.config import (
    DEFAULT_MIN_ELEVATION_DEG,
    DEFAULT_PASS_HORIZON_HOURS,
    DEFAULT_PASS_STEP_SECONDS,
)
from orbit_visibility.exceptions import PropagationInvalid
from orbit_visibility.frames import to_utc
from orbit_visibility.logging_config import get_logger
from orbit_visibility.models import ObserverLocation, Pass, PassSchedule, TrackedObject
from orbit_visibility.propagation import DEFAULT_PROPAGATOR, Propagator
from orbit_visibility.visibility import observe

logger = get_logger(__name__)


def minimum_detectable_duration(step_seconds: float) -> timedelta:
    """Shortest pass reliably detected at this step size (about one step)."""
    return timedelta(seconds=step_seconds)


class _OpenPass:
    """Accumulator for the pass currently in progress."""

    def __init__(self, start: datetime, elevation: float, at_scan_start: bool):
        self.start = start
        self.max_elevation = elevation
        self.peak_time = start
        self.at_scan_start = at_scan_start

    def update(self, t: datetime, elevation: float) -> None:
        if elevation > self.max_elevation:
            self.max_elevation = elevation
            self.peak_time = t

    def close(self, end: datetime, truncated: bool = False) -> Pass:
        return Pass(
            start=self.start,
            end=end,
            max_elevation_deg=self.max_elevation,
            peak_time=self.peak_time,
            truncated=truncated,
            in_progress_at_start=self.at_scan_start,
        )


def predict(
    tracked: TrackedObject,
    observer: ObserverLocation,
    start_time: datetime,
    horizon_hours: float = DEFAULT_PASS_HORIZON_HOURS,
    step_seconds: float = DEFAULT_PASS_STEP_SECONDS,
    min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
    propagator: Optional[Propagator] = None,
    budget_seconds: Optional[float] = None,
) -> Optional[PassSchedule]:
    """
    Predict visibility passes of one object over a search horizon.

    Args:
        tracked: Object to predict for
        observer: Ground location
        start_time: Start of the search horizon
        horizon_hours: Length of the search horizon
        step_seconds: Scan step; passes shorter than this may be missed
        min_elevation_deg: Visibility threshold (strict)
        propagator: Propagation capability (default: SGP4)
        budget_seconds: Optional wall-clock budget; when exceeded the scan
            stops and the schedule is returned with partial=True

    Returns:
        PassSchedule (possibly with no passes), or None when the object
        cannot be propagated at start_time at all
    """
    if step_seconds <= 0:
        raise ValueError(f"step_seconds must be positive, got {step_seconds}")
    if horizon_hours <= 0:
        raise ValueError(f"horizon_hours must be positive, got {horizon_hours}")

    propagator = propagator or DEFAULT_PROPAGATOR
    start_time = to_utc(start_time)
    end_time = start_time + timedelta(hours=horizon_hours)
    step = timedelta(seconds=step_seconds)

    try:
        pending: Optional[float] = observe(tracked, observer, start_time, propagator).elevation_deg
    except PropagationInvalid as e:
        logger.info("pass_prediction_unavailable", name=tracked.name, reason=str(e))
        return None

    deadline = time.monotonic() + budget_seconds if budget_seconds is not None else None

    passes = []
    current: Optional[_OpenPass] = None
    partial = False
    t = start_time

    while t < end_time:
        if deadline is not None and time.monotonic() > deadline:
            partial = True
            break

        if pending is not None:
            # start_time was already propagated by the availability check
            elevation, pending = pending, None
        else:
            try:
                elevation = observe(tracked, observer, t, propagator).elevation_deg
            except PropagationInvalid:
                t += step
                continue

        if elevation > min_elevation_deg:
            if current is None:
                current = _OpenPass(t, elevation, at_scan_start=(t == start_time))
            else:
                current.update(t, elevation)
        elif current is not None:
            passes.append(current.close(t))
            current = None

        t += step

    if current is not None:
        passes.append(current.close(t if partial else end_time, truncated=True))

    if partial:
        logger.warning(
            "pass_scan_budget_exceeded",
            name=tracked.name,
            budget_seconds=budget_seconds,
            reached=t.isoformat(),
            passes=len(passes),
        )

    return PassSchedule(
        name=tracked.name,
        horizon_start=start_time,
        horizon_end=end_time,
        step_seconds=step_seconds,
        min_elevation_deg=min_elevation_deg,
        passes=tuple(passes),
        partial=partial,
    )


def format_duration(seconds: Optional[float]) -> str:
    """Human-readable duration, e.g. '42s' or '5m 07s'; '—' when unknown."""
    if not seconds or seconds <= 0:
        return "—"
    minutes = int(seconds // 60)
    secs = int(round(seconds % 60))
    if secs == 60:
        minutes += 1
        secs = 0
    if minutes == 0:
        return f"{secs}s"
    return f"{minutes}m {secs:02d}s"


def format_elevation(elevation_deg: float) -> str:
    return f"{elevation_deg:.1f}°"


def summarize_next_pass(schedule: Optional[PassSchedule]) -> Optional[Dict[str, str]]:
    """
    Info-panel text for the first pass of a schedule.

    Returns:
        Dictionary with next_pass (ISO start time), max_elevation and
        duration strings, or None when there is nothing to show
    """
    if schedule is None or schedule.next_pass is None:
        return None

    first = schedule.next_pass
    return {
        "next_pass": first.start.isoformat(),
        "max_elevation": format_elevation(first.max_elevation_deg),
        "duration": format_duration(first.duration.total_seconds()),
    }
