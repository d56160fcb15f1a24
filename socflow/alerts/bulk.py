"""
Bulk alert status mutation.

One operator action applies a single status to many alerts. Each alert gets
its own remote update; a failure is recorded and the loop moves on. The local
cache is updated for every attempted alert whatever the remote outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from socflow.alerts.cache import AlertCache
from socflow.core.failures import Failure, classify_exception
from socflow.core.fanout import Fanout, SequentialFanout
from socflow.core.types import AlertStatus
from socflow.sdk.errors import AnalyticsError

logger = logging.getLogger("SocFlow.Bulk")


@dataclass(frozen=True)
class MutationOutcome:
    alert_id: str
    applied: bool
    error: Optional[Failure] = None


@dataclass
class BulkMutationReport:
    desired_state: AlertStatus
    outcomes: List[MutationOutcome] = field(default_factory=list)

    @property
    def applied(self) -> int:
        return sum(1 for o in self.outcomes if o.applied)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.applied)

    @property
    def failed_ids(self) -> List[str]:
        return [o.alert_id for o in self.outcomes if not o.applied]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "desired_state": self.desired_state.value,
            "applied": self.applied,
            "failed": self.failed,
            "failures": {
                o.alert_id: o.error.as_dict() for o in self.outcomes if o.error is not None
            },
        }


class BulkMutationRunner:
    def __init__(
        self,
        client: Any,
        cache: AlertCache,
        *,
        fanout: Optional[Fanout] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._fanout = fanout or SequentialFanout()

    async def apply(
        self,
        targets: Iterable[str],
        desired_state: Union[AlertStatus, str],
    ) -> List[MutationOutcome]:
        desired_state = AlertStatus(desired_state)
        # caller order, first occurrence wins
        ordered = list(dict.fromkeys(targets))
        logger.info("Bulk status update to %s for %d alerts", desired_state.value, len(ordered))

        async def _mutate(alert_id: str) -> MutationOutcome:
            try:
                await self._client.update_alert_status(alert_id, desired_state)
                outcome = MutationOutcome(alert_id, applied=True)
            except AnalyticsError as exc:
                logger.error("Status update for alert %s failed: %s", alert_id, exc)
                outcome = MutationOutcome(alert_id, applied=False, error=classify_exception(exc))
            except Exception as exc:
                logger.error("Status update for alert %s failed unexpectedly: %s", alert_id, exc)
                outcome = MutationOutcome(alert_id, applied=False, error=classify_exception(exc))
            # Optimistic: the cache follows the requested state even on failure.
            self._cache.set_status(alert_id, desired_state)
            return outcome

        outcomes = await self._fanout.run(ordered, _mutate)
        report = self.summarize(outcomes, desired_state)
        if report.failed:
            logger.warning(
                "Bulk status update finished with %d failures: %s",
                report.failed,
                ", ".join(report.failed_ids),
            )
        return outcomes

    @staticmethod
    def summarize(
        outcomes: List[MutationOutcome], desired_state: Union[AlertStatus, str]
    ) -> BulkMutationReport:
        return BulkMutationReport(AlertStatus(desired_state), list(outcomes))
