"""
Local alert cache shared with the presentation layer.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from socflow.core.types import Alert, AlertStatus

logger = logging.getLogger("SocFlow.Alerts.Cache")


class AlertCache:
    """
    Alerts keyed by id.

    Entries are immutable ``Alert`` models; every write swaps in a new copy
    under the lock, so readers never see a half-updated alert.
    """

    def __init__(self, alerts: Optional[Iterable[Alert]] = None) -> None:
        self._lock = threading.Lock()
        self._alerts: Dict[str, Alert] = {}
        if alerts:
            self.load(alerts)

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._alerts

    def load(self, alerts: Iterable[Alert]) -> int:
        loaded = {alert.id: alert for alert in alerts}
        with self._lock:
            self._alerts.update(loaded)
        return len(loaded)

    def get(self, alert_id: str) -> Optional[Alert]:
        return self._alerts.get(alert_id)

    def all(self) -> List[Alert]:
        with self._lock:
            return list(self._alerts.values())

    def status_of(self, alert_id: str) -> Optional[AlertStatus]:
        alert = self._alerts.get(alert_id)
        return alert.status if alert is not None else None

    def set_status(self, alert_id: str, status: Union[AlertStatus, str]) -> Alert:
        status = AlertStatus(status)
        updated_at = datetime.now(timezone.utc).isoformat()
        with self._lock:
            current = self._alerts.get(alert_id)
            if current is None:
                logger.debug("Caching placeholder for unknown alert %s", alert_id)
                updated = Alert(id=alert_id, status=status, updated_at=updated_at)
            else:
                updated = current.model_copy(update={"status": status, "updated_at": updated_at})
            self._alerts[alert_id] = updated
        return updated

    async def refresh(self, client: Any, **filters: Any) -> int:
        """Replace the cache contents with a fresh page from the backend."""
        alerts = await client.list_alerts(**filters)
        with self._lock:
            self._alerts = {alert.id: alert for alert in alerts}
        logger.info("Alert cache refreshed with %d alerts", len(alerts))
        return len(alerts)
