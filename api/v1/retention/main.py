"""Retention sweep admin routes"""

import logging
import os
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import HTTPException
from pydantic import BaseModel

from jobs import NewHireCleanup, SweepReport
from lib.ratelimiting import limiter

router = APIRouter()


class RetentionStatusResponse(BaseModel):
    """Current retention settings and the last sweep"""

    retention_period_days: int
    revoke_before_delete: bool
    last_report: Optional[SweepReport] = None


async def require_admin_key(request: Request) -> None:
    """Reject requests without a valid X-Admin-Key header"""
    expected = os.getenv("ADMIN_API_KEY", "")
    provided = request.headers.get("x-admin-key", "")

    if not expected or not secrets.compare_digest(
        provided.encode(), expected.encode()
    ):
        client_ip = request.client.host if request.client else "unknown"
        logging.getLogger("onboarding.security").warning(
            "ADMIN_KEY_REJECTED ip=%s path=%s configured=%s",
            client_ip,
            request.url.path,
            bool(expected),
        )
        raise HTTPException(status_code=403, detail="Forbidden")


def get_cleanup(request: Request) -> NewHireCleanup:
    """The sweeper the app lifespan started"""
    cleanup = getattr(request.app.state, "new_hire_cleanup", None)
    if cleanup is None:
        raise HTTPException(status_code=503, detail="Retention sweep is not running")
    return cleanup


@router.get("/status")
async def get_status(
    _admin: None = Depends(require_admin_key),
    cleanup: NewHireCleanup = Depends(get_cleanup),
) -> RetentionStatusResponse:
    """Show the current retention period and the last sweep's outcome"""

    return RetentionStatusResponse(
        retention_period_days=cleanup.retention_period_days(),
        revoke_before_delete=cleanup.revoke_before_delete(),
        last_report=cleanup.last_report,
    )


@router.post("/run")
@limiter.limit("6/minute")  # type: ignore
async def run_sweep(
    request: Request,  # pylint: disable=unused-argument
    response: Response,  # pylint: disable=unused-argument
    _admin: None = Depends(require_admin_key),
    cleanup: NewHireCleanup = Depends(get_cleanup),
) -> SweepReport:
    """Run one sweep now, waiting for the background one if it's mid-cycle"""

    return await cleanup.run_once()
