"""
TAP Query Gateway
FastAPI application exposing the asynchronous job manager over HTTP

Wires the configured TAP service, the request correlation middleware and the
routers together.
"""

import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request

from .config import (
    API_TITLE,
    API_DESCRIPTION,
    API_VERSION,
    DEFAULT_JOB_TIMEOUT,
    DEFAULT_MAX_PARALLEL,
    JSON_LOGS,
    LOG_FILE,
    LOG_LEVEL,
    TAP_SERVICE_URL,
)
from .core import clear_context, get_logger, set_request_id, setup_logging
from .routes import queries_router, settings_router
from .services import JobManager, TAPService

setup_logging(
    level=LOG_LEVEL,
    log_file=Path(LOG_FILE) if LOG_FILE else None,
    use_json=JSON_LOGS,
)

logger = get_logger(__name__, service="api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.tap_service = None
    if TAP_SERVICE_URL:
        app.state.tap_service = TAPService(
            TAP_SERVICE_URL,
            timeout=DEFAULT_JOB_TIMEOUT,
            manager=JobManager(max_parallel=DEFAULT_MAX_PARALLEL),
        )
        logger.info("Gateway ready", extra={"service_url": TAP_SERVICE_URL})
    else:
        logger.warning("TAP_SERVICE_URL is not set, query routes will answer 503")

    try:
        yield
    finally:
        service = app.state.tap_service
        if service is not None:
            await service.manager.shutdown()
            await service.aclose()


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_correlation(request: Request, call_next):
    """Tag every request and its log lines with a correlation ID."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    set_request_id(request_id)

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"method": request.method, "path": request.url.path, "status_code": response.status_code},
        )
        return response
    finally:
        clear_context()


app.include_router(queries_router)
app.include_router(settings_router)


@app.get("/")
async def root():
    """Root endpoint - API info"""
    return {
        "message": API_DESCRIPTION,
        "version": API_VERSION,
    }


@app.get("/health")
async def health_check(request: Request):
    service = getattr(request.app.state, "tap_service", None)
    if service is None:
        return {"status": "degraded", "service_url": None}

    return {
        "status": "healthy",
        "service_url": service.base_url,
        "jobs": len(service.manager.get_all_processes()),
        "active_jobs": service.manager.active_count(),
        "max_parallel": service.manager.max_parallel,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
