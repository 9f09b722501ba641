"""
Monitor Loop
Samples prices on a fixed interval and runs alert evaluation.

Usage:
    monitor = MonitorLoop(store, evaluator, price_source, interval=30)
    monitor.start()
    # Alerts fire in the background
    monitor.stop()

Ticks run one after another on a single background thread; a slow price
fetch delays the next tick rather than overlapping it.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from alerts import AlertEvaluator, AlertStore, EvaluationResult, UpstreamError
from alerts.models import utcnow

from .price_source import PriceSource

logger = logging.getLogger(__name__)


class MonitorState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class MonitorStats:
    """Monitor loop statistics"""
    state: MonitorState = MonitorState.STOPPED
    interval_seconds: float = 30.0
    ticks: int = 0
    skipped_ticks: int = 0
    failures: int = 0
    alerts_checked: int = 0
    alerts_triggered: int = 0
    started_at: Optional[datetime] = None
    last_tick_at: Optional[datetime] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "interval_seconds": self.interval_seconds,
            "ticks": self.ticks,
            "skipped_ticks": self.skipped_ticks,
            "failures": self.failures,
            "alerts_checked": self.alerts_checked,
            "alerts_triggered": self.alerts_triggered,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
            "last_error": self.last_error,
        }


class MonitorLoop:
    """
    Periodic alert checker.

    One instance per process, owned by the host application. `start` is a
    no-op while running and `stop` is safe to call at any time. Each run
    gets its own stop event, so a tick still in flight when `stop` is
    called throws its prices away instead of applying them.
    """

    def __init__(
        self,
        store: AlertStore,
        evaluator: AlertEvaluator,
        price_source: PriceSource,
        interval: float = 30.0,
    ):
        self._store = store
        self._evaluator = evaluator
        self._price_source = price_source
        self._interval = interval
        self._lock = threading.Lock()
        # run_once may tick on a request thread while the loop thread ticks
        self._stats_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._stats = MonitorStats(interval_seconds=interval)

    @property
    def state(self) -> MonitorState:
        return self._stats.state

    @property
    def is_running(self) -> bool:
        return self._stats.state == MonitorState.RUNNING

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def stats(self) -> MonitorStats:
        return self._stats

    def start(self) -> Dict[str, Any]:
        with self._lock:
            if self.is_running:
                return {"status": "already_running", **self._stats.to_dict()}

            stop_event = threading.Event()
            self._stop_event = stop_event
            self._stats.state = MonitorState.RUNNING
            self._stats.started_at = utcnow()
            self._thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="alert-monitor",
                daemon=True,
            )
            self._thread.start()

        logger.info("Alert monitor started (interval %ss)", self._interval)
        return {"status": "started", **self._stats.to_dict()}

    def stop(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        with self._lock:
            if not self.is_running:
                return {"status": "not_running", **self._stats.to_dict()}

            self._stop_event.set()
            self._stats.state = MonitorState.STOPPED
            thread = self._thread
            self._thread = None

        if timeout is not None and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

        logger.info("Alert monitor stopped after %d ticks", self._stats.ticks)
        return {"status": "stopped", **self._stats.to_dict()}

    def run_once(self) -> Optional[EvaluationResult]:
        """Run a single tick on the calling thread"""
        return self._tick(None)

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self._tick(stop_event)
            except Exception as e:
                self._record_failure(str(e))
                logger.exception("Alert check failed")
            stop_event.wait(self._interval)

    def _tick(self, stop_event: Optional[threading.Event]) -> Optional[EvaluationResult]:
        alerts = self._store.list_eligible()
        symbols = sorted({a.symbol for a in alerts})
        if not symbols:
            with self._stats_lock:
                self._stats.skipped_ticks += 1
            logger.debug("No active alerts, skipping price fetch")
            return None

        try:
            quotes = self._price_source.get_prices(symbols)
        except UpstreamError as e:
            self._record_failure(e.message)
            logger.warning("Price fetch failed, skipping tick: %s", e.message)
            return None

        if stop_event is not None and stop_event.is_set():
            logger.info("Monitor stopped during price fetch, discarding %d quotes", len(quotes))
            return None

        result = self._evaluator.evaluate(alerts, quotes)
        with self._stats_lock:
            self._stats.ticks += 1
            self._stats.alerts_checked += result.checked_count
            self._stats.alerts_triggered += result.triggered_count
            self._stats.last_tick_at = utcnow()
            self._stats.last_error = None
        logger.info(
            "Alert check: %d checked, %d triggered",
            result.checked_count,
            result.triggered_count,
        )
        return result

    def _record_failure(self, message: str) -> None:
        with self._stats_lock:
            self._stats.failures += 1
            self._stats.last_error = message
