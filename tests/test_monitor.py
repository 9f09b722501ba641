import threading

from alerts import UpstreamError
from services import MonitorLoop, MonitorState


def make_monitor(store, evaluator, price_source, interval=30.0):
    return MonitorLoop(store, evaluator, price_source, interval=interval)


def test_tick_without_eligible_alerts_skips_fetch(store, evaluator, price_source):
    monitor = make_monitor(store, evaluator, price_source)

    assert monitor.run_once() is None

    assert price_source.calls == []
    assert monitor.stats.skipped_ticks == 1


def test_tick_with_only_triggered_alerts_skips_fetch(store, evaluator, price_source):
    alert = store.create({"symbol": "BTC", "targetPrice": 1, "condition": "above"})
    store.mark_triggered(alert.id, 2.0)
    monitor = make_monitor(store, evaluator, price_source)

    monitor.run_once()

    assert price_source.calls == []


def test_tick_fetches_distinct_symbols_and_evaluates(store, registry, evaluator, price_source):
    btc = store.create({"symbol": "btc", "targetPrice": 65000, "condition": "below"})
    store.create({"symbol": "BTCUSDT", "targetPrice": 70000, "condition": "above"})
    store.create({"symbol": "eth", "targetPrice": 3500, "condition": "above"})
    monitor = make_monitor(store, evaluator, price_source)

    result = monitor.run_once()

    assert price_source.calls == [["BTCUSDT", "ETHUSDT"]]
    assert result.checked_count == 3
    assert [a.id for a in result.triggered_alerts] == [btc.id]
    assert [a.id for a in registry.list_active()] == [btc.id]
    assert monitor.stats.ticks == 1
    assert monitor.stats.alerts_triggered == 1


def test_price_failure_is_logged_and_isolated(store, evaluator, price_source, outage, caplog):
    alert = store.create({"symbol": "BTC", "targetPrice": 65000, "condition": "below"})
    monitor = make_monitor(store, evaluator, price_source)
    price_source.error = outage

    assert monitor.run_once() is None
    assert monitor.stats.failures == 1
    assert "connection refused" in monitor.stats.last_error
    assert "Price fetch failed" in caplog.text
    assert store.get(alert.id).triggered is False

    price_source.error = None
    result = monitor.run_once()
    assert len(result.triggered_alerts) == 1
    assert monitor.stats.last_error is None


def test_start_is_idempotent_and_stop_is_safe(store, evaluator, price_source):
    monitor = make_monitor(store, evaluator, price_source, interval=60)
    assert monitor.state == MonitorState.STOPPED
    assert monitor.stop()["status"] == "not_running"

    assert monitor.start()["status"] == "started"
    assert monitor.start()["status"] == "already_running"
    assert monitor.is_running

    assert monitor.stop(timeout=2)["status"] == "stopped"
    assert monitor.state == MonitorState.STOPPED
    assert monitor.stop()["status"] == "not_running"


def test_background_thread_runs_first_tick_immediately(store, evaluator, price_source):
    alert = store.create({"symbol": "BTC", "targetPrice": 65000, "condition": "below"})
    fired = threading.Event()
    evaluator.on_trigger(lambda a: fired.set())
    monitor = make_monitor(store, evaluator, price_source, interval=60)

    monitor.start()
    try:
        assert fired.wait(timeout=5)
    finally:
        monitor.stop(timeout=2)

    assert store.get(alert.id).alarming is True


def test_loop_survives_unexpected_errors(store, evaluator, price_source):
    store.create({"symbol": "BTC", "targetPrice": 65000, "condition": "below"})
    calls = []
    recovered = threading.Event()

    original = price_source.get_prices

    def flaky(symbols):
        calls.append(symbols)
        if len(calls) == 1:
            raise KeyError("unexpected payload")
        recovered.set()
        return original(symbols)

    price_source.get_prices = flaky
    monitor = make_monitor(store, evaluator, price_source, interval=0.01)

    monitor.start()
    try:
        assert recovered.wait(timeout=5)
    finally:
        monitor.stop(timeout=2)

    assert monitor.stats.failures >= 1


def test_quotes_arriving_after_stop_are_discarded(store, evaluator, price_source):
    alert = store.create({"symbol": "BTC", "targetPrice": 65000, "condition": "below"})
    monitor = make_monitor(store, evaluator, price_source, interval=60)
    stop_event = threading.Event()

    original = price_source.get_prices

    def slow(symbols):
        quotes = original(symbols)
        stop_event.set()
        return quotes

    price_source.get_prices = slow

    assert monitor._tick(stop_event) is None
    assert store.get(alert.id).triggered is False


def test_upstream_error_type_is_swallowed_per_tick(store, evaluator, price_source):
    store.create({"symbol": "BTC", "targetPrice": 65000, "condition": "below"})
    price_source.error = UpstreamError("Failed to fetch prices: binance timed out")
    monitor = make_monitor(store, evaluator, price_source)

    for _ in range(3):
        assert monitor.run_once() is None

    assert monitor.stats.failures == 3
    assert len(price_source.calls) == 3


def test_concurrent_manual_checks_keep_exact_counts(store, evaluator, price_source, outage):
    store.create({"symbol": "BTC", "targetPrice": 65000, "condition": "below"})
    price_source.error = outage
    monitor = make_monitor(store, evaluator, price_source)

    def worker():
        for _ in range(50):
            monitor.run_once()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert monitor.stats.failures == 400
    assert monitor.stats.ticks == 0
