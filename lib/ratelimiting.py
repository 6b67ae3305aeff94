"""Rate limiting configuration"""

import logging
import os

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

REDIS_HOST = os.getenv("REDIS_URL")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60/minute"],
    headers_enabled=True,
    storage_uri=REDIS_HOST,
    storage_options={"password": os.getenv("REDIS_PASSWORD", "")} if REDIS_HOST else {},
    key_prefix="onboarding-",
    key_style="endpoint",
    in_memory_fallback_enabled=True,
)


def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Custom rate limit handler with logging"""
    rate_logger = logging.getLogger("onboarding.security")
    client_ip = request.client.host if request.client else "unknown"
    rate_logger.warning(
        "RATE_LIMIT_EXCEEDED ip=%s path=%s method=%s",
        client_ip,
        request.url.path,
        request.method,
    )
    return _rate_limit_exceeded_handler(request, exc)
