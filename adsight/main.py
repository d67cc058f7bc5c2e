"""AdSight — FastAPI Application Entry Point.

Multi-tenant ad analytics and alerting engine.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adsight.api.alert_routes import router as alert_router
from adsight.api.analytics_routes import router as analytics_router
from adsight.api.integration_routes import router as integration_router
from adsight.core.errors import AnalyticsError
from adsight.core.logging import get_logger, timed
from adsight.database import init_db, test_connection
from adsight.scheduler.jobs import start_scheduler, stop_scheduler

logger = get_logger("main")

VERSION = "1.0.0"

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, then run the alert scheduler for the app's lifetime."""
    logger.info(f"AdSight {VERSION} starting ({'serverless' if IS_SERVERLESS else 'long-running'})")
    if test_connection():
        init_db()
    else:
        logger.error("❌ Database not reachable, requests will fail with 503")

    # Serverless instances are frozen between requests; alerts are then
    # evaluated through POST /alerts/evaluate instead.
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("AdSight shut down")


app = FastAPI(
    title="AdSight",
    description=(
        "Tenant-scoped ad analytics: summaries, trends, anomalies, insights, "
        "recommendations, alert rules and a closed natural-language query set."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analytics_router)
app.include_router(alert_router)
app.include_router(integration_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    with timed(
        logger,
        f"{request.method} {request.url.path}",
        endpoint=request.url.path,
        client_id=request.headers.get("x-client-id"),
    ) as fields:
        response = await call_next(request)
        fields["status_code"] = response.status_code
    return response


@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError):
    """Render domain errors as ``{"status": "error", ...}`` with their status."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc.message}",
        extra={"endpoint": request.url.path, "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "error": type(exc).__name__,
            "message": exc.message,
        },
    )


@app.get("/health", tags=["System"])
async def health_check():
    return {"status": "healthy", "service": "adsight", "version": VERSION}
