"""
Dependency accessors.

The app factory in main.py owns every component and parks it on
`app.state`; routers reach them through these functions so tests can
build an app with their own price source.
"""

from fastapi import Request

from alerts import AlarmRegistry, AlertStore
from services import AlarmBroadcaster, MonitorLoop, PriceSource


def get_store(request: Request) -> AlertStore:
    return request.app.state.store


def get_registry(request: Request) -> AlarmRegistry:
    return request.app.state.registry


def get_monitor(request: Request) -> MonitorLoop:
    return request.app.state.monitor


def get_price_source(request: Request) -> PriceSource:
    return request.app.state.price_source


def get_broadcaster(request: Request) -> AlarmBroadcaster:
    return request.app.state.broadcaster
