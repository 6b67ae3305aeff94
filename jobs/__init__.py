from .newhire_cleanup import (
    NewHireCleanup,
    SweepReport,
    SweepStatus,
    select_expired_new_hires,
)
from .runner import SWEEP_INTERVAL, run_new_hire_cleanup

__all__ = [
    "NewHireCleanup",
    "SWEEP_INTERVAL",
    "SweepReport",
    "SweepStatus",
    "run_new_hire_cleanup",
    "select_expired_new_hires",
]
