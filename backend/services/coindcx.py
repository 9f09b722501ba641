import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from core import CoinInfo, PriceQuote, DEFAULT_COINS

from .price_source import PriceSource

logger = logging.getLogger(__name__)


class CoinDCXPriceSource(PriceSource):
    """
    CoinDCX public REST adapter.

    Endpoints:
        GET /exchange/v1/markets_details → listed pairs (symbol, coindcx_name)
        GET /exchange/ticker             → last price and 24h stats per market
    """

    name = "coindcx"

    def __init__(self, base_url: str = "https://api.coindcx.com", **kwargs):
        super().__init__(base_url, **kwargs)

    def get_prices(self, symbols: Iterable[str]) -> List[PriceQuote]:
        wanted = self.normalize(symbols)
        if not wanted:
            return []

        markets = self._markets(what="prices")
        found = [s for s in wanted if s in markets]
        if not found:
            return []

        tickers = self._tickers(what="prices")
        quotes = []
        for symbol in found:
            ticker = tickers.get(markets[symbol])
            if ticker is None:
                continue
            quote = self._quote(symbol, ticker.get("last_price"), ticker.get("change_24_hour"))
            if quote is not None:
                quotes.append(quote)
        return quotes

    def get_coin_info(self, symbol: str) -> Optional[CoinInfo]:
        formatted = self.normalize([symbol])
        if not formatted:
            return None
        formatted = formatted[0]

        markets = self._markets(what="coin info")
        if formatted not in markets:
            return None
        ticker = self._tickers(what="coin info").get(markets[formatted])
        if ticker is None:
            return None
        return self._coin_from_ticker(formatted, ticker)

    def get_default_coins(self) -> List[CoinInfo]:
        markets = self._markets(what="default coins")
        tickers = self._tickers(what="default coins")
        coins = []
        for symbol in DEFAULT_COINS:
            ticker = tickers.get(markets.get(symbol))
            if ticker is None:
                continue
            coin = self._coin_from_ticker(symbol, ticker)
            if coin is not None:
                coins.append(coin)
        return coins

    def search_coins(self, query: str) -> List[CoinInfo]:
        markets = self._markets(what="search results")
        matches = self._search(markets.keys(), query)
        if not matches:
            return []
        tickers = self._tickers(what="search results")
        results = []
        for symbol in matches:
            ticker = tickers.get(markets[symbol])
            if ticker is None:
                continue
            coin = self._coin_from_ticker(symbol, ticker)
            if coin is not None:
                results.append(coin)
        return results

    def _markets(self, what: str) -> Dict[str, str]:
        """symbol -> market name used by the ticker endpoint"""
        rows = self._expect_list(self._get("/exchange/v1/markets_details", what=what), what)
        markets = {}
        for row in rows:
            symbol = row.get("symbol")
            if not symbol:
                continue
            markets[symbol.upper()] = row.get("coindcx_name") or symbol
        return markets

    def _tickers(self, what: str) -> Dict[str, Dict[str, Any]]:
        rows = self._expect_list(self._get("/exchange/ticker", what=what), what)
        return {row["market"]: row for row in rows if row.get("market")}

    def _coin_from_ticker(self, symbol: str, ticker: Dict[str, Any]) -> Optional[CoinInfo]:
        try:
            return CoinInfo(
                symbol=symbol,
                name=self.coin_name(symbol),
                price=ticker.get("last_price"),
                price_change_percent=ticker.get("change_24_hour"),
                volume=ticker.get("volume"),
                high24h=ticker.get("high"),
                low24h=ticker.get("low"),
                last_updated=datetime.now(timezone.utc),
            )
        except ValueError:
            logger.debug("Skipping unusable coindcx ticker for %s", symbol)
            return None
