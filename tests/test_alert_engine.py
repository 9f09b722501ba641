import pytest

from alerts import AlertCondition, condition_met
from core import PriceQuote


def quote(symbol, price):
    return PriceQuote(symbol=symbol, price=price)


@pytest.mark.parametrize(
    "condition, price, expected",
    [
        (AlertCondition.ABOVE, 3001, True),
        (AlertCondition.ABOVE, 3000, True),
        (AlertCondition.ABOVE, 2999.99, False),
        (AlertCondition.BELOW, 2999, True),
        (AlertCondition.BELOW, 3000, True),
        (AlertCondition.BELOW, 3000.01, False),
    ],
)
def test_condition_met_is_inclusive(condition, price, expected):
    assert condition_met(condition, price, 3000) is expected


def test_below_alert_triggers_and_starts_alarm(store, registry, evaluator):
    alert = store.create({"symbol": "BTCUSDT", "targetPrice": 50000, "condition": "below"})

    result = evaluator.evaluate(store.list_eligible(), [quote("BTCUSDT", 49999)])

    assert result.checked_count == 1
    assert [a.id for a in result.triggered_alerts] == [alert.id]
    fired = store.get(alert.id)
    assert fired.triggered is True
    assert fired.alarming is True
    assert fired.trigger_price == 49999
    assert fired.triggered_at is not None
    assert [a.id for a in registry.list_active()] == [alert.id]


def test_triggered_alert_is_not_evaluated_again(store, evaluator):
    alert = store.create({"symbol": "BTCUSDT", "targetPrice": 50000, "condition": "below"})
    evaluator.evaluate(store.list(), [quote("BTCUSDT", 49999)])
    first = store.get(alert.id)

    result = evaluator.evaluate(store.list(), [quote("BTCUSDT", 48000)])

    assert result.checked_count == 0
    assert result.triggered_alerts == []
    again = store.get(alert.id)
    assert again.trigger_price == 49999
    assert again.triggered_at == first.triggered_at


def test_above_alert_below_target_does_not_trigger(store, registry, evaluator):
    alert = store.create({"symbol": "ETHUSDT", "targetPrice": 3000, "condition": "above"})

    result = evaluator.evaluate(store.list_eligible(), [quote("ETHUSDT", 2999)])

    assert result.checked_count == 1
    assert result.triggered_alerts == []
    unchanged = store.get(alert.id)
    assert unchanged.active is True
    assert unchanged.triggered is False
    assert unchanged.to_dict() == alert.to_dict()
    assert registry.list_active() == []


def test_missing_quote_is_skipped(store, evaluator):
    alert = store.create({"symbol": "SOL", "targetPrice": 100, "condition": "above"})
    result = evaluator.evaluate(store.list_eligible(), [quote("BTCUSDT", 1)])
    assert result.checked_count == 1
    assert result.triggered_alerts == []
    assert store.get(alert.id).triggered is False


def test_alert_examined_once_per_pass(store, evaluator):
    alert = store.create({"symbol": "BTC", "targetPrice": 100, "condition": "above"})
    snapshot = store.list_eligible()

    result = evaluator.evaluate(snapshot + snapshot, [quote("BTCUSDT", 90), quote("BTCUSDT", 150)])

    assert result.checked_count == 1
    assert len(result.triggered_alerts) == 1
    # the last quote for a symbol wins
    assert store.get(alert.id).trigger_price == 150


def test_alert_deactivated_after_snapshot_is_skipped(store, evaluator):
    alert = store.create({"symbol": "BTC", "targetPrice": 100, "condition": "above"})
    snapshot = store.list_eligible()
    store.toggle_active(alert.id, False)

    result = evaluator.evaluate(snapshot, [quote("BTCUSDT", 150)])

    assert result.checked_count == 0
    assert store.get(alert.id).triggered is False


def test_inactive_alerts_are_ignored(store, evaluator):
    alert = store.create({"symbol": "BTC", "targetPrice": 100, "condition": "above"})
    store.toggle_active(alert.id, False)
    result = evaluator.evaluate(store.list(), [quote("BTCUSDT", 150)])
    assert result.checked_count == 0
    assert result.triggered_alerts == []


def test_trigger_listeners_are_notified_and_isolated(store, evaluator):
    store.create({"symbol": "BTC", "targetPrice": 100, "condition": "above"})
    seen = []

    def broken(alert):
        raise RuntimeError("listener down")

    evaluator.on_trigger(broken)
    evaluator.on_trigger(seen.append)

    result = evaluator.evaluate(store.list_eligible(), [quote("BTCUSDT", 150)])

    assert len(result.triggered_alerts) == 1
    assert [a.symbol for a in seen] == ["BTCUSDT"]
    assert evaluator.stats()["triggers"] == 1
