"""
Refresh Scheduler

Drives the engine over time with two independent triggers:

- a fixed-cadence loop (background thread) that re-evaluates visibility for
  the capped catalog every EngineConfig.fixed_cadence_ms
- on-demand work (worker pool) that predicts passes and samples the orbit
  path for the selected object when the selection or observer changes

Results are published by replacing a reference to an immutable value, so a
consumer always reads either the previous result or the current one. Every
input change bumps a generation counter; a result computed for an older
generation is discarded instead of being published.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, NamedTuple, Optional, Tuple

from orbit_visibility.config import EngineConfig
from orbit_visibility.logging_config import get_logger
from orbit_visibility.models import (
    ObserverLocation,
    OrbitPath,
    PassSchedule,
    TrackedObject,
    VisibilityReport,
)
from orbit_visibility.orbit_path import sample_path
from orbit_visibility.passes import predict
from orbit_visibility.propagation import DEFAULT_PROPAGATOR, Propagator
from orbit_visibility.visibility import evaluate

logger = get_logger(__name__)


def cap_catalog(objects: Iterable[TrackedObject], config: EngineConfig) -> Tuple[TrackedObject, ...]:
    """First config.max_tracked_objects objects (all of them when uncapped)."""
    objects = tuple(objects)
    if config.max_tracked_objects is None:
        return objects
    return objects[: config.max_tracked_objects]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Inputs(NamedTuple):
    generation: int
    catalog: Tuple[TrackedObject, ...]
    observer: ObserverLocation


class _Selection(NamedTuple):
    generation: int
    tracked: Optional[TrackedObject]


class RefreshScheduler:
    """Fixed-cadence visibility refresh plus on-demand pass/path computation."""

    def __init__(
        self,
        catalog: Iterable[TrackedObject],
        observer: ObserverLocation,
        config: Optional[EngineConfig] = None,
        propagator: Optional[Propagator] = None,
        clock: Optional[Callable[[], datetime]] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        pass_budget_seconds: Optional[float] = None,
    ):
        self.config = config or EngineConfig()
        self.pass_budget_seconds = pass_budget_seconds
        self._propagator = propagator or DEFAULT_PROPAGATOR
        self._clock = clock or _utcnow

        self._lock = threading.Lock()
        self._inputs = _Inputs(0, tuple(catalog), observer)
        self._selection = _Selection(0, None)

        self._report: Optional[VisibilityReport] = None
        self._schedule: Optional[PassSchedule] = None
        self._path: Optional[OrbitPath] = None
        self.last_update: Optional[datetime] = None
        self.discarded_results = 0

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="orbit-vis"
        )
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # Published results

    @property
    def latest_report(self) -> Optional[VisibilityReport]:
        """
        Most recent visibility report for the current catalog and observer.

        None means no report has been published for the current inputs yet:
        before the first tick, and after every catalog or observer change
        until the next tick completes.
        """
        return self._report

    @property
    def latest_schedule(self) -> Optional[PassSchedule]:
        """Pass schedule for the current selection and observer, None while pending or after a failure."""
        return self._schedule

    @property
    def latest_path(self) -> Optional[OrbitPath]:
        """Orbit path for the current selection, None while pending or after a failure."""
        return self._path

    @property
    def observer(self) -> ObserverLocation:
        return self._inputs.observer

    @property
    def catalog(self) -> Tuple[TrackedObject, ...]:
        return self._inputs.catalog

    @property
    def selected(self) -> Optional[TrackedObject]:
        return self._selection.tracked

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # Input changes

    def set_catalog(self, catalog: Iterable[TrackedObject]) -> Optional[Future]:
        """
        Swap in a new catalog.

        The current selection is rebound to the object of the same name in
        the new catalog and recomputed; it is cleared when that name is gone.
        """
        objects = tuple(catalog)
        with self._lock:
            self._inputs = _Inputs(self._inputs.generation + 1, objects, self._inputs.observer)
            self._report = None
            selected = self._selection.tracked

        logger.info("catalog_replaced", tracked=len(objects))

        if selected is None:
            return None
        replacement = next((t for t in objects if t.name == selected.name), None)
        return self.select(replacement)

    def set_observer(self, observer: ObserverLocation) -> Optional[Future]:
        """Change the observer; pass prediction for the selection is redone."""
        with self._lock:
            self._inputs = _Inputs(self._inputs.generation + 1, self._inputs.catalog, observer)
            self._report = None
            self._schedule = None
            selection = self._selection
            inputs = self._inputs

        logger.info(
            "observer_changed",
            latitude=observer.latitude_deg,
            longitude=observer.longitude_deg,
            name=observer.name,
        )

        if selection.tracked is None:
            return None
        return self._executor.submit(self._compute_schedule, selection, inputs)

    def select(self, tracked: Optional[TrackedObject]) -> Optional[Future]:
        """
        Select an object (or clear the selection with None).

        Returns:
            Future resolving to True once the pass schedule and orbit path for
            this selection are both published; False when either was
            discarded as stale or failed (failures are logged)
        """
        with self._lock:
            self._selection = _Selection(self._selection.generation + 1, tracked)
            self._schedule = None
            self._path = None
            selection = self._selection
            inputs = self._inputs

        if tracked is None:
            logger.info("selection_cleared")
            return None

        logger.info("object_selected", name=tracked.name)
        return self._executor.submit(self._compute_selection, selection, inputs)

    # Work

    def tick(self) -> bool:
        """
        Evaluate visibility once for the current inputs.

        Returns:
            True when the report was published, False when the inputs changed
            while it was being computed and it was discarded
        """
        inputs = self._inputs
        objects = cap_catalog(inputs.catalog, self.config)

        report = evaluate(
            objects,
            inputs.observer,
            self._clock(),
            self.config.min_elevation_deg,
            self._propagator,
        )

        with self._lock:
            if inputs.generation != self._inputs.generation:
                self.discarded_results += 1
                logger.debug("stale_report_discarded", generation=inputs.generation)
                return False
            self._report = report
            self.last_update = report.timestamp

        logger.debug("visibility_refreshed", visible=report.count, tracked=len(objects))
        return True

    def _compute_schedule(self, selection: _Selection, inputs: _Inputs) -> bool:
        try:
            schedule = predict(
                selection.tracked,
                inputs.observer,
                self._clock(),
                horizon_hours=self.config.pass_horizon_hours,
                step_seconds=self.config.pass_step_seconds,
                min_elevation_deg=self.config.min_elevation_deg,
                propagator=self._propagator,
                budget_seconds=self.pass_budget_seconds,
            )
        except Exception:
            logger.exception("pass_prediction_failed", name=selection.tracked.name)
            return False

        # A schedule depends on the selection and the observer
        with self._lock:
            if (
                selection.generation != self._selection.generation
                or inputs.generation != self._inputs.generation
            ):
                self.discarded_results += 1
                logger.debug("stale_schedule_discarded", name=selection.tracked.name)
                return False
            self._schedule = schedule
        return True

    def _compute_path(self, selection: _Selection) -> bool:
        try:
            path = sample_path(
                selection.tracked,
                self._clock(),
                propagator=self._propagator,
                step_seconds=self.config.path_step_seconds,
            )
        except Exception:
            logger.exception("orbit_path_failed", name=selection.tracked.name)
            return False

        with self._lock:
            if selection.generation != self._selection.generation:
                self.discarded_results += 1
                logger.debug("stale_path_discarded", name=selection.tracked.name)
                return False
            self._path = path
        return True

    def _compute_selection(self, selection: _Selection, inputs: _Inputs) -> bool:
        published_schedule = self._compute_schedule(selection, inputs)
        published_path = self._compute_path(selection)
        return published_schedule and published_path

    # Lifecycle

    def _run(self) -> None:
        logger.info("refresh_loop_started", cadence_ms=self.config.fixed_cadence_ms)

        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("refresh_tick_failed")
            self._stop_event.wait(self.config.cadence_seconds)

        logger.info("refresh_loop_stopped")

    def start(self) -> None:
        """Start the fixed-cadence loop (no-op if already running)."""
        with self._lock:
            if self.is_running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="orbit-vis-refresh", daemon=True
            )
            self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the fixed-cadence loop and wait for it to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread.is_alive():
            thread.join(timeout=timeout)
        self._thread = None

    def close(self) -> None:
        """Stop the loop and release the worker pool."""
        self.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> "RefreshScheduler":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def status(self) -> Dict[str, Any]:
        """Snapshot of the scheduler state."""
        report = self._report
        schedule = self._schedule
        observer = self._inputs.observer
        return {
            "running": self.is_running,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "tracked_objects": len(self._inputs.catalog),
            "evaluated_objects": len(cap_catalog(self._inputs.catalog, self.config)),
            "visible_objects": report.count if report else 0,
            "selected": self.selected.name if self.selected else None,
            "passes": len(schedule.passes) if schedule else None,
            "discarded_results": self.discarded_results,
            "configuration": {
                "max_tracked_objects": self.config.max_tracked_objects,
                "fixed_cadence_ms": self.config.fixed_cadence_ms,
                "min_elevation_deg": self.config.min_elevation_deg,
            },
            "observer_location": {
                "latitude": observer.latitude_deg,
                "longitude": observer.longitude_deg,
                "height_km": observer.height_km,
                "name": observer.name,
            },
        }
