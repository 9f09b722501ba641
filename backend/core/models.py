"""
Domain Models
The single source of truth for market data formats.

Provider payloads are normalized into these types at the edge; the alert
engine and the API only ever see PriceQuote and CoinInfo.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum


# =============================================================================
# Price Provider
# =============================================================================

class PriceProvider(str, Enum):
    """Exchange a quote came from"""
    BINANCE = "binance"
    COINDCX = "coindcx"


KNOWN_COINS: Dict[str, str] = {
    "BTC": "Bitcoin",
    "ETH": "Ethereum",
    "BNB": "Binance Coin",
    "ADA": "Cardano",
    "SOL": "Solana",
    "XRP": "Ripple",
    "DOT": "Polkadot",
    "DOGE": "Dogecoin",
    "AVAX": "Avalanche",
    "SHIB": "Shiba Inu",
    "MATIC": "Polygon",
    "LTC": "Litecoin",
    "LINK": "Chainlink",
    "UNI": "Uniswap",
    "ALGO": "Algorand",
    "XLM": "Stellar",
    "ATOM": "Cosmos",
    "VET": "VeChain",
    "AXS": "Axie Infinity",
    "FTM": "Fantom",
}

DEFAULT_COINS = ["BTCUSDT", "ETHUSDT", "BNBUSDT", "ADAUSDT", "SOLUSDT"]


def coin_name(symbol: str, quote: str = "USDT") -> str:
    """Display name for a pair, falling back to the base asset"""
    base = symbol.upper()
    if base.endswith(quote):
        base = base[: -len(quote)]
    return KNOWN_COINS.get(base, base)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("symbol", mode="before", check_fields=False)
    @classmethod
    def uppercase_symbol(cls, v):
        """Always uppercase symbols"""
        return v.strip().upper() if isinstance(v, str) else v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# PriceQuote: what the monitor evaluates against
# =============================================================================

class PriceQuote(_CamelModel):
    """
    Price snapshot for one pair.

    Fields:
        symbol: Uppercase pair (BTCUSDT)
        price: Last traded price
        price_change_percent: 24h change, 0 when the provider omits it
    """
    symbol: str = Field(..., min_length=1, max_length=30)
    price: float = Field(..., gt=0)
    price_change_percent: float = 0.0


# =============================================================================
# CoinInfo: richer view for the coin endpoints
# =============================================================================

class CoinInfo(_CamelModel):
    symbol: str = Field(..., min_length=1, max_length=30)
    name: str
    price: float = Field(..., ge=0)
    price_change_percent: Optional[float] = None
    volume: Optional[float] = None
    high24h: Optional[float] = Field(default=None, alias="high24h")
    low24h: Optional[float] = Field(default=None, alias="low24h")
    last_updated: Optional[datetime] = None
