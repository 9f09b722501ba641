"""
Alert Models
Data structures for price alerts and evaluation results.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from enum import Enum
import uuid


DEFAULT_QUOTE_CURRENCY = "USDT"


class AlertCondition(str, Enum):
    """Direction of the price threshold"""
    ABOVE = "above"
    BELOW = "below"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_alert_id() -> str:
    return f"alert_{uuid.uuid4().hex[:12]}"


def normalize_symbol(symbol: str, quote: str = DEFAULT_QUOTE_CURRENCY) -> str:
    """
    Canonical trading pair form.

    "btc" -> "BTCUSDT", " ethusdt " -> "ETHUSDT"
    """
    formatted = symbol.strip().upper()
    if not formatted.endswith(quote):
        formatted += quote
    return formatted


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts else None


@dataclass
class Alert:
    """
    A user's price watch on one trading pair.

    Lifecycle:
        active -> triggered + alarming -> alarm stopped

    `triggered` flips to True once and never back; stopping the alarm
    only clears `alarming`.
    """
    id: str
    symbol: str
    target_price: float
    condition: AlertCondition
    coin_name: str = ""
    active: bool = True
    triggered: bool = False
    alarming: bool = False
    trigger_price: Optional[float] = None
    triggered_at: Optional[datetime] = None
    alarm_stopped_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_eligible(self) -> bool:
        """Participates in evaluation"""
        return self.active and not self.triggered

    def is_met_by(self, price: float) -> bool:
        return condition_met(self.condition, price, self.target_price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "coinName": self.coin_name,
            "targetPrice": self.target_price,
            "condition": self.condition.value,
            "active": self.active,
            "triggered": self.triggered,
            "alarming": self.alarming,
            "triggerPrice": self.trigger_price,
            "triggeredAt": _iso(self.triggered_at),
            "alarmStoppedAt": _iso(self.alarm_stopped_at),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


def condition_met(condition: AlertCondition, price: float, target: float) -> bool:
    """Inclusive threshold check: touching the target counts"""
    if condition == AlertCondition.ABOVE:
        return price >= target
    elif condition == AlertCondition.BELOW:
        return price <= target
    return False


@dataclass
class EvaluationResult:
    """Outcome of one evaluation pass"""
    checked_count: int = 0
    triggered_alerts: List[Alert] = field(default_factory=list)

    @property
    def triggered_count(self) -> int:
        return len(self.triggered_alerts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checked": self.checked_count,
            "triggered": self.triggered_count,
            "alerts": [a.to_dict() for a in self.triggered_alerts],
        }
