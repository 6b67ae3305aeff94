# pylint: disable=C0114
from .main import (
    RetentionStatusResponse,
    get_cleanup,
    get_status,
    require_admin_key,
    router,
    run_sweep,
)

__all__ = [
    "RetentionStatusResponse",
    "get_cleanup",
    "get_status",
    "require_admin_key",
    "router",
    "run_sweep",
]
