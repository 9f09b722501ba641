import logging
from typing import Dict, List, Callable, Any, Iterable

from core import PriceQuote

from .models import Alert, EvaluationResult, utcnow
from .registry import AlarmRegistry
from .store import AlertStore

logger = logging.getLogger(__name__)

OnTriggerCallback = Callable[[Alert], None]


class AlertEvaluator:
    """
    Decides which alerts fire for a batch of quotes.

    Eligibility (active and not yet triggered) is read from the store at
    the moment each alert is examined, not from the snapshot passed in,
    so an alert deactivated mid-tick is skipped.
    """

    def __init__(self, store: AlertStore, registry: AlarmRegistry):
        self._store = store
        self._registry = registry
        self._callbacks: List[OnTriggerCallback] = []
        self._stats = {
            "evaluations": 0,
            "checked": 0,
            "triggers": 0,
            "start_time": utcnow(),
        }

    def evaluate(self, alerts: Iterable[Alert], quotes: Iterable[PriceQuote]) -> EvaluationResult:
        prices = self._index_quotes(quotes)
        result = EvaluationResult()
        seen = set()
        self._stats["evaluations"] += 1

        for alert in alerts:
            if alert.id in seen:
                continue
            seen.add(alert.id)

            with self._store.lock:
                current = self._store.find(alert.id)
                if current is None or not current.is_eligible:
                    continue
                result.checked_count += 1

                price = prices.get(current.symbol.upper())
                if price is None:
                    continue
                if not current.is_met_by(price):
                    continue

                fired = self._store.mark_triggered(current.id, price)
                if fired is None:
                    continue
                self._registry.register(fired.id)

            result.triggered_alerts.append(fired)
            logger.info(
                "Alert triggered: %s %s %s (current: %s)",
                fired.symbol,
                fired.condition.value,
                fired.target_price,
                price,
            )
            self._notify(fired)

        self._stats["checked"] += result.checked_count
        self._stats["triggers"] += result.triggered_count
        return result

    def on_trigger(self, callback: OnTriggerCallback) -> None:
        self._callbacks.append(callback)

    def stats(self) -> Dict[str, Any]:
        uptime = (utcnow() - self._stats["start_time"]).total_seconds()
        return {
            **self._stats,
            "start_time": self._stats["start_time"].isoformat(),
            "uptime_seconds": round(uptime, 2),
        }

    def _index_quotes(self, quotes: Iterable[PriceQuote]) -> Dict[str, float]:
        # later quotes for the same symbol replace earlier ones
        prices: Dict[str, float] = {}
        for quote in quotes:
            prices[quote.symbol.upper()] = float(quote.price)
        return prices

    def _notify(self, alert: Alert) -> None:
        for callback in self._callbacks:
            try:
                callback(alert)
            except Exception:
                logger.exception("Trigger listener failed for alert %s", alert.id)
