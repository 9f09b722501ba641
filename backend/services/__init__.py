"""
Services
Background work and external collaborators.

    price_source.py → PriceSource base + create_price_source factory
    binance.py      → Binance REST adapter
    coindcx.py      → CoinDCX REST adapter
    monitor.py      → MonitorLoop (periodic alert checks)
    events.py       → AlarmBroadcaster (SSE fan-out)
"""

from .price_source import PriceSource, create_price_source
from .binance import BinancePriceSource
from .coindcx import CoinDCXPriceSource
from .monitor import MonitorLoop, MonitorState, MonitorStats
from .events import AlarmBroadcaster

__all__ = [
    "PriceSource",
    "create_price_source",
    "BinancePriceSource",
    "CoinDCXPriceSource",
    "MonitorLoop",
    "MonitorState",
    "MonitorStats",
    "AlarmBroadcaster",
]
