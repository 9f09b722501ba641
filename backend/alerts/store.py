import math
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from .errors import NotFoundError, ValidationError
from .models import (
    Alert,
    AlertCondition,
    DEFAULT_QUOTE_CURRENCY,
    new_alert_id,
    normalize_symbol,
    utcnow,
)

OnAlarmClearedCallback = Callable[[str], None]

# request key -> Alert attribute
EDITABLE_FIELDS = {
    "symbol": "symbol",
    "coinName": "coin_name",
    "coin_name": "coin_name",
    "targetPrice": "target_price",
    "target_price": "target_price",
    "condition": "condition",
    "active": "active",
}


def _parse_symbol(value: Any, quote: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Symbol is required", field="symbol")
    return normalize_symbol(value, quote)


def _parse_target_price(value: Any) -> float:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError("Target price is required", field="targetPrice")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid target price", field="targetPrice")
    if not math.isfinite(price) or price <= 0:
        raise ValidationError("Target price must be a positive number", field="targetPrice")
    return price


def _parse_condition(value: Any) -> AlertCondition:
    if isinstance(value, AlertCondition):
        return value
    if not isinstance(value, str) or not value:
        raise ValidationError("Condition is required", field="condition")
    try:
        return AlertCondition(value.strip().lower())
    except ValueError:
        raise ValidationError('Condition must be either "above" or "below"', field="condition")


def _parse_active(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError("Active status must be a boolean", field="active")
    return value


def _parse_coin_name(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("Coin name must be a string", field="coinName")
    return value.strip()


class AlertStore:
    """
    In-memory owner of all Alert records.

    Records handed out are copies; the only way to change one is through
    the mutation methods, which build a new record and swap it in while
    holding `lock`. A mutation that fails validation leaves the store
    untouched.
    """

    def __init__(
        self,
        quote_currency: str = DEFAULT_QUOTE_CURRENCY,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._alerts: Dict[str, Alert] = {}
        self._quote = quote_currency.upper()
        self._clock = clock or utcnow
        self._on_alarm_cleared: List[OnAlarmClearedCallback] = []
        self.lock = threading.RLock()

    def now(self) -> datetime:
        return self._clock()

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, alert_id: str) -> Alert:
        with self.lock:
            return replace(self._require(alert_id))

    def find(self, alert_id: str) -> Optional[Alert]:
        with self.lock:
            alert = self._alerts.get(alert_id)
            return replace(alert) if alert else None

    def list(self) -> List[Alert]:
        with self.lock:
            return [replace(a) for a in self._alerts.values()]

    def list_by_symbol(self, symbol: str) -> List[Alert]:
        if not isinstance(symbol, str) or not symbol.strip():
            raise ValidationError("Symbol is required", field="symbol")
        wanted = symbol.strip().upper()
        with self.lock:
            return [replace(a) for a in self._alerts.values() if a.symbol.upper() == wanted]

    def list_eligible(self) -> List[Alert]:
        """Alerts that are active and have not fired yet"""
        with self.lock:
            return [replace(a) for a in self._alerts.values() if a.is_eligible]

    def __len__(self) -> int:
        return len(self._alerts)

    # =========================================================================
    # Mutations
    # =========================================================================

    def create(self, data: Mapping[str, Any]) -> Alert:
        symbol = _parse_symbol(data.get("symbol"), self._quote)
        target_price = _parse_target_price(data.get("targetPrice", data.get("target_price")))
        condition = _parse_condition(data.get("condition"))
        coin_name = _parse_coin_name(data.get("coinName", data.get("coin_name")))

        now = self.now()
        alert = Alert(
            id=new_alert_id(),
            symbol=symbol,
            target_price=target_price,
            condition=condition,
            coin_name=coin_name,
            active=True,
            triggered=False,
            alarming=False,
            created_at=now,
            updated_at=now,
        )
        with self.lock:
            while alert.id in self._alerts:
                alert.id = new_alert_id()
            self._alerts[alert.id] = alert
            return replace(alert)

    def update(self, alert_id: str, partial: Mapping[str, Any]) -> Alert:
        """
        Merge editable fields into an alert.

        Unknown keys, `id` and lifecycle fields are ignored. Deactivating
        an alarming alert stops its alarm.
        """
        changes = self._parse_changes(partial)
        with self.lock:
            current = self._require(alert_id)
            updated = replace(current, **changes)
            updated.updated_at = self.now()
            cleared = False
            if not updated.active and updated.alarming:
                self._clear_alarm(updated)
                cleared = True
            self._alerts[alert_id] = updated
            if cleared:
                self._notify_alarm_cleared(alert_id)
            return replace(updated)

    def toggle_active(self, alert_id: str, active: Optional[bool] = None) -> Alert:
        if active is not None:
            active = _parse_active(active)
        with self.lock:
            current = self._require(alert_id)
            new_value = (not current.active) if active is None else active
            return self.update(alert_id, {"active": new_value})

    def delete(self, alert_id: str) -> Alert:
        with self.lock:
            current = self._require(alert_id)
            if current.alarming:
                self.stop_alarm(alert_id)
            removed = self._alerts.pop(alert_id)
            return replace(removed)

    def mark_triggered(self, alert_id: str, price: float) -> Optional[Alert]:
        """
        Fire an alert at `price`.

        The record is re-read here, so an alert deleted, deactivated or
        fired since the caller looked at it is left alone and None is
        returned.
        """
        with self.lock:
            current = self._alerts.get(alert_id)
            if current is None or not current.is_eligible:
                return None
            now = self.now()
            updated = replace(
                current,
                triggered=True,
                alarming=True,
                trigger_price=price,
                triggered_at=now,
                updated_at=now,
            )
            self._alerts[alert_id] = updated
            return replace(updated)

    def stop_alarm(self, alert_id: str) -> Alert:
        """Acknowledge an alarm; no-op when the alert is not alarming"""
        with self.lock:
            current = self._require(alert_id)
            if not current.alarming:
                return replace(current)
            updated = replace(current)
            self._clear_alarm(updated)
            updated.updated_at = updated.alarm_stopped_at
            self._alerts[alert_id] = updated
            self._notify_alarm_cleared(alert_id)
            return replace(updated)

    def clear(self) -> None:
        with self.lock:
            alarming = [a.id for a in self._alerts.values() if a.alarming]
            self._alerts.clear()
            for alert_id in alarming:
                self._notify_alarm_cleared(alert_id)

    # =========================================================================
    # Listeners
    # =========================================================================

    def on_alarm_cleared(self, callback: OnAlarmClearedCallback) -> None:
        self._on_alarm_cleared.append(callback)

    # =========================================================================
    # Internals
    # =========================================================================

    def _require(self, alert_id: str) -> Alert:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise NotFoundError(f"Alert with ID {alert_id} not found")
        return alert

    def _parse_changes(self, partial: Mapping[str, Any]) -> Dict[str, Any]:
        parsers = {
            "symbol": lambda v: _parse_symbol(v, self._quote),
            "coin_name": _parse_coin_name,
            "target_price": _parse_target_price,
            "condition": _parse_condition,
            "active": _parse_active,
        }
        changes: Dict[str, Any] = {}
        for key, value in partial.items():
            attr = EDITABLE_FIELDS.get(key)
            if attr is None:
                continue
            changes[attr] = parsers[attr](value)
        return changes

    def _clear_alarm(self, alert: Alert) -> None:
        alert.alarming = False
        alert.alarm_stopped_at = self.now()

    def _notify_alarm_cleared(self, alert_id: str) -> None:
        for callback in self._on_alarm_cleared:
            callback(alert_id)
