import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from alerts import AlarmRegistry, AlertEvaluator, AlertServiceError, AlertStore
from api import (
    alarms_router,
    alerts_router,
    coins_router,
    monitor_router,
    RequestLogMiddleware,
)
from config import Settings, settings as default_settings, setup_logging
from services import AlarmBroadcaster, MonitorLoop, PriceSource, create_price_source

logger = logging.getLogger(__name__)

APP_NAME = "Crypto Price Alerts API"
APP_VERSION = "1.0.0"


def _error(status: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"message": message, "status": status, **extra}},
    )


def create_app(
    settings: Optional[Settings] = None,
    price_source: Optional[PriceSource] = None,
) -> FastAPI:
    """
    Build the API with its own store, registry, evaluator and monitor.

    Everything the routers touch lives on `app.state`; nothing is a
    module-level singleton, so tests can build as many apps as they like.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level)
    price_source = price_source or create_price_source(settings)

    store = AlertStore(quote_currency=settings.quote_currency)
    registry = AlarmRegistry(store)
    evaluator = AlertEvaluator(store, registry)
    broadcaster = AlarmBroadcaster()
    evaluator.on_trigger(broadcaster.publish_trigger)
    monitor = MonitorLoop(
        store,
        evaluator,
        price_source,
        interval=settings.check_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.monitor_autostart:
            monitor.start()
        yield
        monitor.stop()
        price_source.close()

    app = FastAPI(
        title=APP_NAME,
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
    )

    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry
    app.state.evaluator = evaluator
    app.state.broadcaster = broadcaster
    app.state.monitor = monitor
    app.state.price_source = price_source

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLogMiddleware)

    @app.exception_handler(AlertServiceError)
    async def service_error_handler(request: Request, exc: AlertServiceError):
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
        message = first.get("msg", "Invalid request")
        if loc:
            return _error(400, f"{'.'.join(loc)}: {message}", field=loc[-1])
        return _error(400, message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "An unexpected error occurred")

    app.include_router(alerts_router, prefix="/api")
    app.include_router(alarms_router, prefix="/api")
    app.include_router(coins_router, prefix="/api")
    app.include_router(monitor_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "provider": price_source.name,
            "alerts": {
                "total": len(store),
                "alarming": len(registry.list_active()),
            },
            "monitor": monitor.stats.to_dict(),
            "evaluator": evaluator.stats(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=default_settings.host, port=default_settings.port)
