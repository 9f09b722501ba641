"""
Price Sources
Exchange adapters behind one interface.

Usage:
    from services import create_price_source

    source = create_price_source(settings)
    quotes = source.get_prices(["btc", "ETHUSDT"])

Callers must not assume every requested symbol comes back: pairs the
exchange does not list are silently left out. Outages raise UpstreamError.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from alerts import UpstreamError, normalize_symbol
from core import CoinInfo, PriceQuote, PriceProvider, KNOWN_COINS, coin_name

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10


class PriceSource(ABC):
    """Base class for exchange adapters (blocking, requests based)"""

    name = "base"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        quote_currency: str = "USDT",
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.quote = quote_currency.upper()
        self.session = session or requests.Session()

    @abstractmethod
    def get_prices(self, symbols: Iterable[str]) -> List[PriceQuote]:
        """Current quotes for the given pairs"""

    @abstractmethod
    def get_coin_info(self, symbol: str) -> Optional[CoinInfo]:
        """Detailed 24h view of one pair, None if the exchange does not list it"""

    @abstractmethod
    def get_default_coins(self) -> List[CoinInfo]:
        """Popular pairs shown before the user picks anything"""

    @abstractmethod
    def search_coins(self, query: str) -> List[CoinInfo]:
        """Pairs matching a symbol fragment or coin name"""

    def close(self) -> None:
        self.session.close()

    # =========================================================================
    # Helpers
    # =========================================================================

    def normalize(self, symbols: Iterable[str]) -> List[str]:
        seen: List[str] = []
        for symbol in symbols:
            if not symbol or not symbol.strip():
                continue
            formatted = normalize_symbol(symbol, self.quote)
            if formatted not in seen:
                seen.append(formatted)
        return seen

    def coin_name(self, symbol: str) -> str:
        return coin_name(symbol, self.quote)

    def _get(self, path: str, params: Dict[str, Any] = None, what: str = "data") -> Any:
        """GET a JSON document, mapping every transport failure to UpstreamError"""
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.Timeout as e:
            raise UpstreamError(f"Failed to fetch {what}: {self.name} timed out") from e
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"Failed to fetch {what}: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Failed to fetch {what}: malformed response from {self.name}") from e

    def _expect_list(self, payload: Any, what: str) -> List[Dict[str, Any]]:
        if not isinstance(payload, list):
            raise UpstreamError(f"Failed to fetch {what}: malformed response from {self.name}")
        return [row for row in payload if isinstance(row, dict)]

    def _quote(self, symbol: str, price: Any, change: Any = None) -> Optional[PriceQuote]:
        try:
            return PriceQuote(
                symbol=symbol,
                price=price,
                price_change_percent=change if change not in (None, "") else 0.0,
            )
        except PydanticValidationError:
            logger.debug("Skipping unusable %s quote for %s: %r", self.name, symbol, price)
            return None

    def _search(self, symbols: Iterable[str], query: str) -> List[str]:
        """
        Symbol fragment match first; when nothing matches, fall back to
        known coin names ("bitcoin" -> BTCUSDT).
        """
        needle = query.strip().lower()
        pairs = [s for s in symbols if s.endswith(self.quote)]
        matches = [s for s in pairs if needle in s.lower()]
        if not matches:
            by_name = {f"{base}{self.quote}" for base, name in KNOWN_COINS.items() if needle in name.lower()}
            matches = [s for s in pairs if s in by_name]
        return matches[:SEARCH_LIMIT]


def create_price_source(settings) -> PriceSource:
    """Create the configured price source (binance or coindcx)"""
    if settings.price_provider == PriceProvider.COINDCX:
        from .coindcx import CoinDCXPriceSource
        logger.info("Using CoinDCX for price data")
        return CoinDCXPriceSource(
            base_url=settings.coindcx_base_url,
            timeout=settings.request_timeout_seconds,
            quote_currency=settings.quote_currency,
        )
    else:
        from .binance import BinancePriceSource
        logger.info("Using Binance for price data")
        return BinancePriceSource(
            base_url=settings.binance_base_url,
            timeout=settings.request_timeout_seconds,
            quote_currency=settings.quote_currency,
        )
