__all__ = [
    "Base",
    "User",
    "UserRole",
]

from models.base import Base
from models.user import User, UserRole
