"""
Reconcile results returned to the scheduler.

A ``ReconcileResult`` is one directive: terminal (nothing to do now) or
requeue, optionally after a delay. ``Results`` is an ordered collection of
directives gathered from independent sub-operations. It never decides an
overall outcome on its own; the caller applies its own policy
(see ``esoperator.driver.default.aggregate_results``).

Usage:
    >>> from esoperator.core.results import Results, NO_REQUEUE, requeue_after
    >>> results = Results().with_result(NO_REQUEUE).with_result(requeue_after(10))
    >>> len(results)
    2
"""
from datetime import timedelta
from typing import Iterable, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from esoperator.config.settings import settings


class ReconcileResult(BaseModel):
    """Scheduling directive, serialised as ``{"requeue": bool, "requeueAfter": seconds}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    requeue: bool = False
    requeue_after: timedelta = Field(default=timedelta(0), alias="requeueAfter")

    @property
    def is_terminal(self) -> bool:
        return not self.requeue and self.requeue_after <= timedelta(0)

    def to_dict(self) -> dict:
        return {
            "requeue": self.requeue,
            "requeueAfter": self.requeue_after.total_seconds(),
        }


NO_REQUEUE = ReconcileResult()
REQUEUE = ReconcileResult(requeue=True)


def requeue_after(delay: Union[int, float, timedelta]) -> ReconcileResult:
    """Requeue directive with a delay given in seconds or as a timedelta."""
    if not isinstance(delay, timedelta):
        delay = timedelta(seconds=delay)
    return ReconcileResult(requeue=True, requeue_after=delay)


DEFAULT_REQUEUE = requeue_after(settings.default_requeue_seconds)


class Results:
    """Ordered, append-only sequence of reconcile results."""

    def __init__(self, results: Optional[Iterable[ReconcileResult]] = None):
        self._results: List[ReconcileResult] = list(results or ())

    def with_result(self, result: ReconcileResult) -> "Results":
        """Append one directive and return self for chaining."""
        self._results.append(result)
        return self

    def with_results(self, other: "Results") -> "Results":
        """Append every directive of another sequence and return self."""
        self._results.extend(other)
        return self

    @staticmethod
    def combine(a: "Results", b: "Results") -> "Results":
        """New sequence holding the directives of ``a`` followed by those of ``b``."""
        return Results(a).with_results(b)

    def __iter__(self) -> Iterator[ReconcileResult]:
        return iter(list(self._results))

    def __len__(self) -> int:
        return len(self._results)

    def __getitem__(self, i: int) -> ReconcileResult:
        return self._results[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Results):
            return NotImplemented
        return self._results == other._results

    def __repr__(self) -> str:
        return f"Results({self._results!r})"
