"""
Core Module
Market data contracts shared by the price sources, the alert engine and
the API.

Exports:
    Models: PriceQuote, CoinInfo, PriceProvider
    Helpers: coin_name, KNOWN_COINS, DEFAULT_COINS
"""

from .models import (
    PriceQuote,
    CoinInfo,
    PriceProvider,
    coin_name,
    KNOWN_COINS,
    DEFAULT_COINS,
)

__all__ = [
    "PriceQuote",
    "CoinInfo",
    "PriceProvider",
    "coin_name",
    "KNOWN_COINS",
    "DEFAULT_COINS",
]
