"""
Reconciliation bookkeeping shared by the driver.

- Expectations tracker for in-flight pod deletions
- Reconcile results returned to the scheduler
"""
from esoperator.core.expectations import Expectations, new_expectations
from esoperator.core.results import (
    DEFAULT_REQUEUE,
    NO_REQUEUE,
    REQUEUE,
    ReconcileResult,
    Results,
    requeue_after,
)

__all__ = [
    "Expectations",
    "new_expectations",
    "DEFAULT_REQUEUE",
    "NO_REQUEUE",
    "REQUEUE",
    "ReconcileResult",
    "Results",
    "requeue_after",
]
