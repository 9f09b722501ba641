import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import requests

from alerts import UpstreamError
from core import CoinInfo, PriceQuote, DEFAULT_COINS

from .price_source import PriceSource

logger = logging.getLogger(__name__)


def _symbols_param(symbols: List[str]) -> str:
    # Binance wants a compact JSON array: ["BTCUSDT","ETHUSDT"]
    return json.dumps(symbols, separators=(",", ":"))


class BinancePriceSource(PriceSource):
    """
    Binance spot REST adapter.

    Endpoints:
        GET /ticker/price   → last price, all pairs
        GET /ticker/24hr    → 24h stats, one pair or a list of pairs
    """

    name = "binance"

    def __init__(self, base_url: str = "https://api.binance.com/api/v3", **kwargs):
        super().__init__(base_url, **kwargs)

    def get_prices(self, symbols: Iterable[str]) -> List[PriceQuote]:
        wanted = self.normalize(symbols)
        if not wanted:
            return []

        all_prices = self._expect_list(self._get("/ticker/price", what="prices"), "prices")
        listed = {row.get("symbol"): row.get("price") for row in all_prices}
        found = [s for s in wanted if s in listed]
        if not found:
            return []

        stats = self._stats_for(found, what="prices")

        quotes = []
        for symbol in found:
            change = stats.get(symbol, {}).get("priceChangePercent")
            quote = self._quote(symbol, listed[symbol], change)
            if quote is not None:
                quotes.append(quote)
        return quotes

    def get_coin_info(self, symbol: str) -> Optional[CoinInfo]:
        formatted = self.normalize([symbol])
        if not formatted:
            return None
        formatted = formatted[0]

        try:
            resp = self.session.get(
                f"{self.base_url}/ticker/24hr",
                params={"symbol": formatted},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"Failed to fetch coin info: {e}") from e

        # Binance answers 400 "Invalid symbol" for unlisted pairs
        if resp.status_code == 400:
            return None
        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise UpstreamError(f"Failed to fetch coin info: {e}") from e
        if not isinstance(data, dict):
            raise UpstreamError("Failed to fetch coin info: malformed response from binance")

        return self._coin_from_stats(data)

    def get_default_coins(self) -> List[CoinInfo]:
        stats = self._stats_for(DEFAULT_COINS, what="default coins")
        coins = []
        for symbol in DEFAULT_COINS:
            if symbol in stats:
                coin = self._coin_from_stats(stats[symbol])
                if coin is not None:
                    coins.append(coin)
        return coins

    def search_coins(self, query: str) -> List[CoinInfo]:
        all_prices = self._expect_list(self._get("/ticker/price", what="search results"), "search results")
        listed = {row.get("symbol"): row.get("price") for row in all_prices if row.get("symbol")}
        results = []
        for symbol in self._search(listed.keys(), query):
            try:
                results.append(CoinInfo(symbol=symbol, name=self.coin_name(symbol), price=listed[symbol]))
            except ValueError:
                logger.debug("Skipping unusable binance search row for %s", symbol)
        return results

    def _stats_for(self, symbols: List[str], what: str) -> Dict[str, Dict[str, Any]]:
        payload = self._get("/ticker/24hr", params={"symbols": _symbols_param(symbols)}, what=what)
        return {row.get("symbol"): row for row in self._expect_list(payload, what)}

    def _coin_from_stats(self, data: Dict[str, Any]) -> Optional[CoinInfo]:
        symbol = data.get("symbol", "")
        try:
            return CoinInfo(
                symbol=symbol,
                name=self.coin_name(symbol),
                price=data.get("lastPrice"),
                price_change_percent=data.get("priceChangePercent"),
                volume=data.get("volume"),
                high24h=data.get("highPrice"),
                low24h=data.get("lowPrice"),
                last_updated=datetime.now(timezone.utc),
            )
        except ValueError:
            logger.debug("Skipping unusable binance stats row for %s", symbol)
            return None
