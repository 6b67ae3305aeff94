"""New Hire Onboarding Backend"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Any

import dotenv
import sentry_sdk
from sentry_sdk.integrations.logging import EventHandler, LoggingIntegration
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from api.v1.retention import router as retention_router
from db import engine, get_session, run_migrations_async
from jobs import NewHireCleanup, run_new_hire_cleanup
from lib.config import RetentionSettings, load_bot_options
from lib.graph import GraphClient
from lib.ratelimiting import limiter, rate_limit_handler
from lib.user_storage import UserStorageProvider

dotenv.load_dotenv()

SHUTDOWN_GRACE_SECONDS = 30

sentry_dsn = os.getenv("SENTRY_DSN")
if sentry_dsn:
    sentry_sdk.init(
        dsn=sentry_dsn,
        enable_logs=True,
        integrations=[
            LoggingIntegration(
                sentry_logs_level=logging.INFO,
                level=logging.INFO,
                event_level=logging.ERROR,
            ),
        ],
        environment=os.getenv("ENVIRONMENT", "development"),
    )

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
)

# Configure onboarding loggers explicitly (uvicorn can override basicConfig)
_log_formatter = logging.Formatter(
    "%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
)
_log_handler = logging.StreamHandler()
_log_handler.setFormatter(_log_formatter)
_sentry_handler = EventHandler(level=logging.ERROR) if sentry_dsn else None
for _logger_name in ("onboarding.access", "onboarding.security"):
    _logger = logging.getLogger(_logger_name)
    _logger.setLevel(log_level)
    _logger.addHandler(_log_handler)
    if _sentry_handler:
        _logger.addHandler(_sentry_handler)
    _logger.propagate = False

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """DB setup, retention sweep start/stop"""
    await run_migrations_async()

    bot_options = load_bot_options()
    settings = RetentionSettings(os.getenv("ENV_FILE", ".env"))
    cleanup = NewHireCleanup(
        graph=GraphClient(manifest_id=bot_options.manifest_id),
        user_storage=UserStorageProvider(get_session),
        bot_options=bot_options,
        retention_period_days=settings,
        revoke_before_delete=lambda: settings.revoke_before_delete,
    )
    fastapi_app.state.new_hire_cleanup = cleanup

    stop_event = asyncio.Event()
    cleanup_task = asyncio.create_task(run_new_hire_cleanup(cleanup, stop_event))

    yield

    stop_event.set()
    try:
        # cancels the task once the grace period runs out
        await asyncio.wait_for(cleanup_task, timeout=SHUTDOWN_GRACE_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("New hire cleanup did not stop in time, cancelled")

    await engine.dispose()  # shutdown


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests for observability and security monitoring"""

    async def dispatch(self, request: Request, call_next: Any):
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logging.getLogger("onboarding.access").exception(
                "Unhandled exception in request %s %s", request.method, request.url.path
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        client_ip = request.client.host if request.client else "unknown"
        status_code = response.status_code

        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logging.getLogger("onboarding.access").log(
            level,
            "%s %s %d %.0fms ip=%s",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            client_ip,
        )

        return response


app = FastAPI(
    lifespan=lifespan,
    title="New Hire Onboarding Backend",
    redoc_url=None,
    swagger_ui_oauth2_redirect_url=None,
)
app.state.limiter = limiter

app.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestLoggingMiddleware)

ALLOWED_ORIGINS = [o for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["content-type", "accept", "x-admin-key"],
    max_age=3600,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    """Invalid request handler"""
    raise HTTPException(
        status_code=400,
        detail={"errors": exc.errors(), "body": exc.body},
    )


app.include_router(retention_router, prefix="/api/v1/retention", tags=["retention"])


@app.get("/health")
async def health(_request: Request):
    """Liveness probe"""
    return {"status": "ok"}
