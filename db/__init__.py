# pylint: disable=C0114
from .main import engine, get_session, run_migrations_async

__all__ = [
    "engine",
    "get_session",
    "run_migrations_async",
]
