"""User storage provider"""

import logging
from typing import Any, AsyncContextManager, Callable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User, UserRole

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class UserStorageProvider:
    """Reads and removes user records

    Args:
        session_factory: Callable returning an async session context manager,
            e.g. ``db.get_session`` or an ``async_sessionmaker``.
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def get_all_users(self, role: UserRole) -> list[User]:
        """All users with the given role, oldest installation first"""
        async with self._session_factory() as session:
            result = await session.execute(
                select(User)
                .where(User.user_role == int(role))
                .order_by(User.bot_installed_on, User.aad_object_id)
            )
            return list(result.scalars().all())

    async def delete_users_batch(self, users: Sequence[User]) -> int:
        """Delete the given users in one transaction. Returns # of rows deleted"""
        ids: list[Any] = [user.aad_object_id for user in users]
        if not ids:
            return 0

        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(User).where(User.aad_object_id.in_(ids))
                )

        logger.info("Deleted %d user records", result.rowcount)
        return result.rowcount
