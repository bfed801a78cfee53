"""
Expectations bookkeeping for pod deletions.

The Kubernetes client cache can lag behind actions the operator already
issued. A reconciliation running before the cache catches up would still see
a just-deleted pod and evaluate (or delete) it again. The tracker counts, per
managed resource, deletions requested but not yet observed, so the driver can
hold off until they are.

Access pattern:
    - the reconciliation path calls ``expect_deletion`` with the pod name right
      after a delete call succeeds;
    - the observation path (pod watch events, possibly on another thread)
      calls ``observe_deletion`` when the pod is confirmed gone;
    - the driver calls ``fulfilled`` before acting on a resource.

Every read-modify-write happens under a single ``threading.Lock`` held only
for the dictionary update, never across I/O or ``await``.

Usage:
    >>> from esoperator.core.expectations import new_expectations
    >>> from esoperator.models.pod import NamespacedName
    >>>
    >>> key = NamespacedName("default", "elasticsearch-sample")
    >>> expectations = new_expectations()
    >>> expectations.expect_deletion(key, "elasticsearch-sample-es-0")
    >>> expectations.fulfilled(key)
    False
    >>> expectations.observe_deletion(key, "elasticsearch-sample-es-0")
    True
    >>> expectations.fulfilled(key)
    True
"""
import threading
from typing import Dict, Optional, Set

from esoperator.models.pod import NamespacedName


class Expectations:
    """
    Outstanding pod deletions per managed resource.

    Deletions registered with a pod name are only matched by an observation
    of that same pod; deletions registered by count alone are matched by any
    observation for the resource. Each driver owns its own instance; there is
    no shared global tracker.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._deletions: Dict[NamespacedName, int] = {}
        self._pods: Dict[NamespacedName, Set[str]] = {}

    def expect_deletions(self, key: NamespacedName, count: int) -> None:
        """Register ``count`` deletions issued for ``key``."""
        if count < 0:
            raise ValueError(f"expected deletion count must be >= 0, got {count}")
        if count == 0:
            return
        with self._lock:
            self._deletions[key] = self._deletions.get(key, 0) + count

    def expect_deletion(self, key: NamespacedName, pod_name: Optional[str] = None) -> None:
        """Register one deletion for ``key``, tied to ``pod_name`` when given."""
        with self._lock:
            if pod_name is not None:
                pods = self._pods.setdefault(key, set())
                if pod_name in pods:
                    return
                pods.add(pod_name)
            self._deletions[key] = self._deletions.get(key, 0) + 1

    def observe_deletion(self, key: NamespacedName, pod_name: Optional[str] = None) -> bool:
        """
        Record one confirmed deletion for ``key``. Never goes below zero.

        A named observation of a pod the operator did not delete is ignored
        unless deletions registered by count alone are outstanding.

        Returns:
            True if an outstanding deletion was matched
        """
        with self._lock:
            count = self._deletions.get(key, 0)
            pods = self._pods.get(key, set())
            if pod_name is not None and pod_name in pods:
                pods.discard(pod_name)
            elif count > len(pods):
                pass
            elif pod_name is None and pods:
                pods.pop()
            else:
                return False
            self._set_count(key, count - 1)
            return True

    def _set_count(self, key: NamespacedName, count: int) -> None:
        if count > 0:
            self._deletions[key] = count
            return
        self._deletions.pop(key, None)
        self._pods.pop(key, None)

    def pending_deletions(self, key: NamespacedName) -> int:
        with self._lock:
            return self._deletions.get(key, 0)

    def pending_pods(self, key: NamespacedName) -> Set[str]:
        """Names of the pods whose deletion is not yet observed."""
        with self._lock:
            return set(self._pods.get(key, ()))

    def fulfilled(self, key: NamespacedName) -> bool:
        """True when no deletion is outstanding for ``key``."""
        return self.pending_deletions(key) == 0

    def forget(self, key: NamespacedName) -> None:
        """Drop all bookkeeping for ``key``, e.g. once the resource itself is gone."""
        with self._lock:
            self._set_count(key, 0)

    def snapshot(self) -> Dict[NamespacedName, int]:
        """Copy of every outstanding count."""
        with self._lock:
            return dict(self._deletions)


def new_expectations() -> Expectations:
    """Fresh, empty tracker."""
    return Expectations()
