"""
Detection job: the gated, re-enterable remote detection run.

The job only starts when every upload slot has succeeded. Success schedules
a cancellable delayed navigation to the results view.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from socflow.core.failures import Failure, classify_exception
from socflow.core.types import (
    DETECTION_HOURS_BACK,
    DETECTION_TIMEOUT_SECONDS,
    NAVIGATION_DELAY_SECONDS,
    DetectionResults,
    ErrorKind,
    JobStatus,
)
from socflow.detection.navigation import LoopScheduler, NavigationScheduler, ScheduledCallback
from socflow.ingestion.coordinator import UploadCoordinator
from socflow.sdk.errors import AnalyticsError

logger = logging.getLogger("SocFlow.Detection")

RESULTS_VIEW = "/dashboard"


@dataclass(frozen=True)
class DetectionRunResult:
    accepted: bool
    status: JobStatus
    alerts_generated: Optional[int] = None
    error: Optional[Failure] = None


class DetectionJob:
    """
    Single detection job per ingestion session.

    Transitions: IDLE -> RUNNING -> SUCCEEDED | FAILED, and
    SUCCEEDED | FAILED -> RUNNING on a new ``run()``.
    """

    def __init__(
        self,
        client: Any,
        coordinator: UploadCoordinator,
        *,
        navigate: Optional[Callable[[str], None]] = None,
        scheduler: Optional[NavigationScheduler] = None,
        navigation_delay: float = NAVIGATION_DELAY_SECONDS,
        results_view: str = RESULTS_VIEW,
        hours_back: int = DETECTION_HOURS_BACK,
        timeout: float = DETECTION_TIMEOUT_SECONDS,
        now_fn: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._coordinator = coordinator
        self._navigate = navigate
        self._scheduler = scheduler or LoopScheduler()
        self._navigation_delay = navigation_delay
        self._results_view = results_view
        self._hours_back = hours_back
        self._timeout = timeout
        self._now_fn = now_fn
        self._navigation: Optional[ScheduledCallback] = None

        self.status = JobStatus.IDLE
        self.alerts_generated: Optional[int] = None
        self.results: Optional[DetectionResults] = None
        self.error: Optional[Failure] = None
        self.run_count = 0
        self.last_started_at: Optional[float] = None
        self.last_finished_at: Optional[float] = None

    @property
    def navigation_pending(self) -> bool:
        return self._navigation is not None and not self._navigation.cancelled()

    def cancel_navigation(self) -> bool:
        """Drop a pending post-success navigation, e.g. when the host view closes."""
        handle = self._navigation
        self._navigation = None
        if handle is None or handle.cancelled():
            return False
        handle.cancel()
        logger.debug("Pending navigation to %s cancelled", self._results_view)
        return True

    def snapshot(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "alerts_generated": self.alerts_generated,
            "error": self.error.as_dict() if self.error else None,
            "run_count": self.run_count,
            "navigation_pending": self.navigation_pending,
            "last_started_at": self.last_started_at,
            "last_finished_at": self.last_finished_at,
        }

    async def run(self) -> DetectionRunResult:
        if self.status == JobStatus.RUNNING:
            logger.warning("Detection run rejected: a run is already in flight")
            return DetectionRunResult(False, self.status, error=Failure(ErrorKind.ALREADY_RUNNING))
        # Readiness is read here, synchronously, right before the trigger.
        if not self._coordinator.all_ready:
            logger.warning("Detection run rejected: not all sources have been uploaded")
            return DetectionRunResult(False, self.status, error=Failure(ErrorKind.NOT_READY))

        self.cancel_navigation()
        self.alerts_generated = None
        self.results = None
        self.error = None
        self.status = JobStatus.RUNNING
        self.run_count += 1
        self.last_started_at = self._now_fn()
        self.last_finished_at = None
        run_id = self.run_count
        logger.info("Detection run #%d started (hours_back=%d)", run_id, self._hours_back)

        try:
            results = await asyncio.wait_for(
                self._client.run_detection(hours_back=self._hours_back, timeout=self._timeout),
                timeout=self._timeout,
            )
        except asyncio.CancelledError:
            logger.warning("Detection run #%d cancelled", run_id)
            self._finish_failed(Failure(ErrorKind.UNKNOWN, "cancelled"))
            raise
        except asyncio.TimeoutError:
            logger.error("Detection run #%d timed out after %.0fs", run_id, self._timeout)
            return self._finish_failed(Failure(ErrorKind.TIMEOUT))
        except AnalyticsError as exc:
            logger.error("Detection run #%d failed: %s", run_id, exc)
            return self._finish_failed(self._detection_failure(classify_exception(exc)))
        except Exception as exc:
            logger.error("Detection run #%d failed unexpectedly: %s", run_id, exc)
            return self._finish_failed(Failure(ErrorKind.UNKNOWN, str(exc)))

        self.results = results
        self.alerts_generated = results.total_alerts
        self.status = JobStatus.SUCCEEDED
        self.last_finished_at = self._now_fn()
        logger.info("Detection run #%d completed: %d alerts generated", run_id, results.total_alerts)
        self._schedule_navigation()
        return DetectionRunResult(True, self.status, alerts_generated=self.alerts_generated)

    @staticmethod
    def _detection_failure(failure: Failure) -> Failure:
        if failure.kind in (ErrorKind.TIMEOUT, ErrorKind.SERVER_REJECTED):
            return failure
        return Failure(ErrorKind.UNKNOWN, failure.detail)

    def _finish_failed(self, failure: Failure) -> DetectionRunResult:
        self.error = failure
        self.status = JobStatus.FAILED
        self.last_finished_at = self._now_fn()
        return DetectionRunResult(True, self.status, error=failure)

    def _schedule_navigation(self) -> None:
        if self._navigate is None:
            return
        self._navigation = self._scheduler.schedule(self._navigation_delay, self._fire_navigation)
        logger.debug(
            "Navigation to %s scheduled in %.1fs", self._results_view, self._navigation_delay
        )

    def _fire_navigation(self) -> None:
        self._navigation = None
        if self._navigate is not None:
            self._navigate(self._results_view)
