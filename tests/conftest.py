import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Ensure backend/ is on sys.path so `import alerts` works under pytest
BACKEND = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, "backend"))
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

from alerts import AlarmRegistry, AlertEvaluator, AlertStore, UpstreamError  # noqa: E402
from core import CoinInfo, PriceQuote  # noqa: E402
from services import PriceSource  # noqa: E402


class FakeClock:
    """Deterministic clock advancing one second per reading"""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.current = self.current + timedelta(seconds=1)
        return self.current


class FakePriceSource(PriceSource):
    """In-memory price source; set `prices` or `error` per test"""

    name = "fake"

    def __init__(self, prices=None):
        super().__init__("http://prices.invalid")
        self.prices = dict(prices or {})
        self.error = None
        self.calls = []

    def get_prices(self, symbols):
        wanted = self.normalize(symbols)
        self.calls.append(wanted)
        if self.error is not None:
            raise self.error
        return [PriceQuote(symbol=s, price=self.prices[s]) for s in wanted if s in self.prices]

    def get_coin_info(self, symbol):
        formatted = self.normalize([symbol])[0]
        if formatted not in self.prices:
            return None
        return CoinInfo(symbol=formatted, name=self.coin_name(formatted), price=self.prices[formatted])

    def get_default_coins(self):
        if self.error is not None:
            raise self.error
        return [
            CoinInfo(symbol=s, name=self.coin_name(s), price=p)
            for s, p in self.prices.items()
        ]

    def search_coins(self, query):
        return [
            CoinInfo(symbol=s, name=self.coin_name(s), price=self.prices[s])
            for s in self._search(self.prices.keys(), query)
        ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return AlertStore(clock=clock)


@pytest.fixture
def registry(store):
    return AlarmRegistry(store)


@pytest.fixture
def evaluator(store, registry):
    return AlertEvaluator(store, registry)


@pytest.fixture
def price_source():
    return FakePriceSource({"BTCUSDT": 60000.0, "ETHUSDT": 3000.0})


@pytest.fixture
def outage():
    return UpstreamError("Failed to fetch prices: connection refused")
