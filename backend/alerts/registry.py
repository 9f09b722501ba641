from typing import List, Set

from .models import Alert
from .store import AlertStore


class AlarmRegistry:
    """
    Index of alert ids that are currently alarming.

    The store stays authoritative: the registry only holds ids, re-checks
    each record when listing, and drops ids whose alarm was cleared
    through the store (stop, deactivate, delete).
    """

    def __init__(self, store: AlertStore):
        self._store = store
        self._ids: Set[str] = set()
        store.on_alarm_cleared(self.discard)

    def register(self, alert_id: str) -> bool:
        """Add a triggered alert; returns False if the alert is not triggered"""
        with self._store.lock:
            alert = self._store.find(alert_id)
            if alert is None or not alert.triggered:
                return False
            self._ids.add(alert_id)
            return True

    def stop(self, alert_id: str) -> Alert:
        """
        Acknowledge an alarm.

        Raises NotFoundError for unknown ids. Stopping an alert that is not
        alarming returns it unchanged.
        """
        with self._store.lock:
            alert = self._store.stop_alarm(alert_id)
            self._ids.discard(alert_id)
            return alert

    def discard(self, alert_id: str) -> None:
        with self._store.lock:
            self._ids.discard(alert_id)

    def list_active(self) -> List[Alert]:
        with self._store.lock:
            active = []
            for alert_id in sorted(self._ids):
                alert = self._store.find(alert_id)
                if alert is None or not alert.alarming:
                    self._ids.discard(alert_id)
                    continue
                active.append(alert)
            active.sort(key=lambda a: a.triggered_at)
            return active

    def rebuild(self) -> int:
        """Repopulate the index from the store"""
        with self._store.lock:
            self._ids = {a.id for a in self._store.list() if a.alarming}
            return len(self._ids)

    def __contains__(self, alert_id: str) -> bool:
        return alert_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

