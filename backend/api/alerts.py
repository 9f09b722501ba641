"""
Alerts API
CRUD for price alerts.

Endpoints:
    GET    /api/alerts               → List all alerts
    GET    /api/alerts/coin/{symbol} → Alerts for one pair
    POST   /api/alerts               → Create alert
    PUT    /api/alerts/{id}          → Update alert
    DELETE /api/alerts/{id}          → Delete alert (stops its alarm first)
    PATCH  /api/alerts/{id}/toggle   → Set or flip `active`
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ConfigDict, StrictBool
from pydantic.alias_generators import to_camel

from alerts import AlertStore

from .deps import get_store

router = APIRouter(prefix="/alerts", tags=["Alerts"])


# =============================================================================
# Request Models
# =============================================================================

class CreateAlertRequest(BaseModel):
    """
    Request body for creating an alert.

    `targetPrice` reaches the store untouched; the store parses it and
    reports field-level errors.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "symbol": "BTC",
                "coinName": "Bitcoin",
                "targetPrice": 50000,
                "condition": "below",
            }
        },
    )

    symbol: Optional[str] = None
    target_price: Any = None
    condition: Optional[str] = None
    coin_name: Optional[str] = None


class UpdateAlertRequest(CreateAlertRequest):
    """Request body for updating an alert; only given fields change"""
    active: Optional[StrictBool] = None


class ToggleAlertRequest(BaseModel):
    """Omit `active` to flip the current value"""
    active: Optional[StrictBool] = None


# =============================================================================
# Routes
# =============================================================================

@router.get("")
async def list_alerts(store: AlertStore = Depends(get_store)):
    """Get all alerts"""
    return [a.to_dict() for a in store.list()]


@router.get("/coin/{symbol}")
async def list_alerts_for_coin(symbol: str, store: AlertStore = Depends(get_store)):
    """Get alerts for one trading pair (case-insensitive)"""
    return [a.to_dict() for a in store.list_by_symbol(symbol)]


@router.post("", status_code=201)
async def create_alert(request: CreateAlertRequest, store: AlertStore = Depends(get_store)):
    """
    Create a new alert.

    The symbol is uppercased and gets the quote currency appended when
    missing ("btc" → "BTCUSDT"). Condition is "above" or "below".
    """
    alert = store.create(request.model_dump(exclude_none=True))
    return alert.to_dict()


@router.put("/{alert_id}")
async def update_alert(
    alert_id: str,
    request: UpdateAlertRequest,
    store: AlertStore = Depends(get_store),
):
    """Update an alert. `id`, trigger and alarm fields cannot be edited."""
    alert = store.update(alert_id, request.model_dump(exclude_unset=True))
    return alert.to_dict()


@router.delete("/{alert_id}")
async def delete_alert(alert_id: str, store: AlertStore = Depends(get_store)):
    """Delete an alert"""
    store.delete(alert_id)
    return {"message": "Alert deleted successfully"}


@router.patch("/{alert_id}/toggle")
async def toggle_alert(
    alert_id: str,
    request: Optional[ToggleAlertRequest] = Body(default=None),
    store: AlertStore = Depends(get_store),
):
    """Activate or deactivate an alert. Deactivating stops its alarm."""
    active = request.active if request is not None else None
    alert = store.toggle_active(alert_id, active)
    return alert.to_dict()
