"""User database models"""

from datetime import datetime
from enum import IntEnum
from typing import Optional

from sqlalchemy import Boolean, DateTime, SmallInteger, String
from sqlalchemy.orm import Mapped, MappedColumn

from models.base import Base


class UserRole(IntEnum):
    """Role the bot assigned to a user when it was installed"""

    NEW_HIRE = 0
    HIRING_MANAGER = 1


class User(Base):
    """User table, written by the bot and purged by the retention sweep"""

    __tablename__ = "users"

    aad_object_id: Mapped[str] = MappedColumn(String(36), primary_key=True)
    user_role: Mapped[int] = MappedColumn(
        SmallInteger, nullable=False, default=UserRole.NEW_HIRE.value, index=True
    )
    bot_installed_on: Mapped[Optional[datetime]] = MappedColumn(
        DateTime(timezone=True), nullable=True, default=None
    )
    user_principal_name: Mapped[Optional[str]] = MappedColumn(
        String, nullable=True, default=None
    )
    conversation_id: Mapped[Optional[str]] = MappedColumn(
        String, nullable=True, default=None
    )
    service_url: Mapped[Optional[str]] = MappedColumn(
        String, nullable=True, default=None
    )
    opted_in: Mapped[bool] = MappedColumn(Boolean, nullable=False, default=True)
