"""New hire retention sweep - revokes the bot for new hires past their retention period"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Optional

from pydantic import BaseModel

from lib.config import BotOptions
from lib.graph import GraphClient
from lib.user_storage import UserStorageProvider
from models import User, UserRole

logger = logging.getLogger(__name__)


class SweepStatus(Enum):
    """How a sweep cycle ended"""

    NO_TOKEN = "no_token"
    NO_NEW_HIRES = "no_new_hires"
    NONE_ELIGIBLE = "none_eligible"
    COMPLETED = "completed"
    FAILED = "failed"


class SweepReport(BaseModel):
    """Outcome of one sweep cycle"""

    started_at: datetime
    status: SweepStatus = SweepStatus.COMPLETED
    new_hires: int = 0
    eligible: int = 0
    removed: int = 0
    revoked: int = 0
    error: Optional[str] = None


def _as_utc(moment: datetime) -> datetime:
    # sqlite hands back naive datetimes
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def select_expired_new_hires(
    new_hires: Iterable[User], now: datetime, retention_days: int
) -> list[User]:
    """New hires whose bot was installed more than retention_days whole days before now"""
    now = _as_utc(now)
    return [
        user
        for user in new_hires
        if user.bot_installed_on is not None
        and (now - _as_utc(user.bot_installed_on)).days > retention_days
    ]


class NewHireCleanup:
    """One cycle of the new hire retention sweep.

    Args:
        graph (GraphClient): Token service and directory API.
        user_storage (UserStorageProvider): User store.
        bot_options (BotOptions): Credentials used to get the application token.
        retention_period_days (Callable[[], int]): Read once per cycle, so edits
            only affect the next cycle.
        revoke_before_delete (Callable[[], bool], optional): When it returns True the
            bot is uninstalled before the store rows go, and only rows whose
            uninstall succeeded are deleted.
        clock (Callable[[], datetime], optional): Source of "now".
    """

    def __init__(
        self,
        graph: GraphClient,
        user_storage: UserStorageProvider,
        bot_options: BotOptions,
        retention_period_days: Callable[[], int],
        revoke_before_delete: Optional[Callable[[], bool]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.graph = graph
        self.user_storage = user_storage
        self.bot_options = bot_options
        self.retention_period_days = retention_period_days
        self.revoke_before_delete = revoke_before_delete or (lambda: False)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.last_report: Optional[SweepReport] = None
        self._lock = asyncio.Lock()

    async def run_once(self) -> SweepReport:
        """Run a single sweep. Never raises; failures end up in the report"""
        async with self._lock:
            report = SweepReport(started_at=self.clock())
            logger.info("Remove new hire sweep starts running at %s", report.started_at)
            try:
                await self._sweep(report)
            except Exception as e:  # pylint: disable=broad-exception-caught
                report.status = SweepStatus.FAILED
                report.error = str(e) or type(e).__name__
                logger.exception("Error while removing new hires: %s", e)

            self.last_report = report
            return report

    async def _sweep(self, report: SweepReport) -> None:
        token = await self.graph.obtain_application_token(
            self.bot_options.tenant_id,
            self.bot_options.microsoft_app_id,
            self.bot_options.microsoft_app_password,
        )
        if token is None:
            logger.info(
                "Failed to acquire application token for app %s",
                self.bot_options.microsoft_app_id,
            )
            report.status = SweepStatus.NO_TOKEN
            return

        new_hires = await self.user_storage.get_all_users(UserRole.NEW_HIRE)
        report.new_hires = len(new_hires)
        if not new_hires:
            logger.info("New hires not available")
            report.status = SweepStatus.NO_NEW_HIRES
            return

        retention_days = self.retention_period_days()
        expired = select_expired_new_hires(new_hires, report.started_at, retention_days)
        report.eligible = len(expired)
        if not expired:
            logger.info("No new hires completed their %d day retention period", retention_days)
            report.status = SweepStatus.NONE_ELIGIBLE
            return

        logger.info(
            "%d of %d new hires are past the %d day retention period",
            len(expired),
            len(new_hires),
            retention_days,
        )

        if self.revoke_before_delete():
            await self._revoke_then_delete(token.access_token, expired, report)
        else:
            await self._delete_then_revoke(token.access_token, expired, report)

        report.status = SweepStatus.COMPLETED

    async def _delete_then_revoke(
        self, access_token: str, expired: list[User], report: SweepReport
    ) -> None:
        # rows deleted here stay deleted even if an uninstall below fails
        await self.user_storage.delete_users_batch(expired)
        report.removed = len(expired)

        for user in expired:
            await self._revoke(access_token, user.aad_object_id)
            report.revoked += 1

    async def _revoke_then_delete(
        self, access_token: str, expired: list[User], report: SweepReport
    ) -> None:
        revoked: list[User] = []
        try:
            for user in expired:
                await self._revoke(access_token, user.aad_object_id)
                revoked.append(user)
                report.revoked += 1
        except Exception as e:
            if revoked:
                try:
                    await self.user_storage.delete_users_batch(revoked)
                    report.removed = len(revoked)
                except Exception:  # pylint: disable=broad-exception-caught
                    logger.exception(
                        "Failed to delete %d revoked new hires after revocation error: %s",
                        len(revoked),
                        e,
                    )
            raise

        await self.user_storage.delete_users_batch(revoked)
        report.removed = len(revoked)

    async def _revoke(self, access_token: str, user_id: str) -> None:
        installed_app_id = await self.graph.get_installed_app_id(access_token, user_id)
        await self.graph.remove_app_from_user_scope(access_token, user_id, installed_app_id)
