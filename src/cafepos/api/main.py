from __future__ import annotations

import logging
import os
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from sqlalchemy import Engine
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from cafepos.api.dependencies import STAFF_ID_HEADER
from cafepos.api.error_handling import register_exception_handlers
from cafepos.api.middleware.request_id import RequestIDMiddleware
from cafepos.api.routes.admin import router as admin_router
from cafepos.api.routes.health import router as health_router
from cafepos.api.routes.menu import router as menu_router
from cafepos.api.routes.metrics import router as metrics_router
from cafepos.api.routes.orders import router as orders_router
from cafepos.api.routes.tables import router as tables_router
from cafepos.infrastructure.observability.logging_config import configure_logging
from cafepos.infrastructure.observability.otel import configure_otel

logger = logging.getLogger("cafepos.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    # Dev/test: any origin, no credentials.
    if env in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _route_template(request: Request) -> str:
    # Label metrics by route template so ids do not explode cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _record_request(request: Request, status_code: int, started: float) -> dict[str, object]:
    duration_seconds = time.perf_counter() - started
    path = _route_template(request)
    REQUEST_COUNT.labels(method=request.method, path=path, status_code=str(status_code)).inc()
    REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration_seconds)
    return {
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "duration_ms": round(duration_seconds * 1000, 2),
        "staff_id": request.headers.get(STAFF_ID_HEADER),
    }


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_error", extra=_record_request(request, 500, started))
            raise

        logger.info("request_complete", extra=_record_request(request, response.status_code, started))
        return response


def create_app(engine: Engine | None = None) -> FastAPI:
    """Build the API. Without an explicit engine, repositories use DATABASE_URL."""
    configure_logging()

    app = FastAPI(title="cafepos backend", version="0.1.0")
    app.state.engine = engine
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(menu_router)
    app.include_router(tables_router)
    app.include_router(orders_router)
    app.include_router(admin_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", "X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
