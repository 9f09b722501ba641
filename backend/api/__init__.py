"""
API Routers
"""
from .alerts import router as alerts_router
from .alarms import router as alarms_router
from .coins import router as coins_router
from .monitor import router as monitor_router
from .middleware import RequestLogMiddleware

__all__ = [
    "alerts_router",
    "alarms_router",
    "coins_router",
    "monitor_router",
    "RequestLogMiddleware",
]
