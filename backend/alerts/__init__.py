"""
Alert System
Price threshold alerts with a one-shot trigger and an alarm that stays on
until acknowledged.

Structure:
    alerts/
    ├── errors.py    → ValidationError, NotFoundError, UpstreamError
    ├── models.py    → Alert, AlertCondition, EvaluationResult
    ├── store.py     → AlertStore (canonical records)
    ├── registry.py  → AlarmRegistry (alarming index)
    └── engine.py    → AlertEvaluator (trigger decisions)

Usage:
    from alerts import AlertStore, AlarmRegistry, AlertEvaluator

    store = AlertStore()
    registry = AlarmRegistry(store)
    evaluator = AlertEvaluator(store, registry)

    alert = store.create({"symbol": "btc", "targetPrice": 50000, "condition": "below"})

    # Evaluate (called by the monitor loop with fresh quotes)
    result = evaluator.evaluate(store.list_eligible(), quotes)

    # Acknowledge
    registry.stop(alert.id)
"""

from .errors import (
    AlertServiceError,
    ValidationError,
    NotFoundError,
    UpstreamError,
)

from .models import (
    Alert,
    AlertCondition,
    EvaluationResult,
    condition_met,
    normalize_symbol,
)

from .store import AlertStore
from .registry import AlarmRegistry
from .engine import AlertEvaluator

__all__ = [
    # Errors
    "AlertServiceError",
    "ValidationError",
    "NotFoundError",
    "UpstreamError",
    # Models
    "Alert",
    "AlertCondition",
    "EvaluationResult",
    "condition_met",
    "normalize_symbol",
    # Components
    "AlertStore",
    "AlarmRegistry",
    "AlertEvaluator",
]
