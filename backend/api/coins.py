"""
Coins API
Thin pass-through to the configured price source.

Endpoints:
    GET /api/coins/prices?symbols=btc,eth → Batch prices
    GET /api/coins/default                → Popular pairs
    GET /api/coins/search/{query}         → Search pairs
    GET /api/coins/{symbol}               → 24h info for one pair

Provider failures surface as 502; no placeholder prices are returned.
"""

from fastapi import APIRouter, Depends, Query

from alerts import NotFoundError, ValidationError
from services import PriceSource

from .deps import get_price_source

router = APIRouter(prefix="/coins", tags=["Coins"])

MIN_QUERY_LENGTH = 2


@router.get("/prices")
def get_prices(
    symbols: str = Query(default="", description="Comma separated, e.g. btc,ETHUSDT"),
    source: PriceSource = Depends(get_price_source),
):
    symbol_list = [s.strip() for s in symbols.split(",") if s.strip()]
    if not symbol_list:
        raise ValidationError("Symbols parameter is required", field="symbols")
    return [q.to_dict() for q in source.get_prices(symbol_list)]


@router.get("/default")
def get_default_coins(source: PriceSource = Depends(get_price_source)):
    return [c.to_dict() for c in source.get_default_coins()]


@router.get("/search/{query}")
def search_coins(query: str, source: PriceSource = Depends(get_price_source)):
    if len(query.strip()) < MIN_QUERY_LENGTH:
        raise ValidationError(
            f"Search query must be at least {MIN_QUERY_LENGTH} characters",
            field="query",
        )
    return [c.to_dict() for c in source.search_coins(query)]


# Must stay last: {symbol} would swallow the routes above
@router.get("/{symbol}")
def get_coin(symbol: str, source: PriceSource = Depends(get_price_source)):
    coin = source.get_coin_info(symbol)
    if coin is None:
        raise NotFoundError(f"Coin {symbol} not found")
    return coin.to_dict()
