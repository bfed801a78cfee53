"""
Safe deletion of Elasticsearch pods.

A pod may only be deleted once the Elasticsearch node it runs holds no shard
data. Any shard copy assigned to the node, or relocating to it, blocks the
deletion: the pod is requeued and checked again against a later cluster state.
A pod whose node is not part of the cluster holds no data and is deleted
right away.

Safe deletions are registered in the expectations tracker as soon as the
delete call succeeds. A failed delete does not stop the evaluation of the
remaining pods; failures are reported together once every pod was handled.

This module does not log. It returns results and raises errors for the
caller to report.
"""
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Protocol

from esoperator.core.expectations import Expectations
from esoperator.core.results import DEFAULT_REQUEUE, NO_REQUEUE, ReconcileResult, Results
from esoperator.core.state import ReconcileState
from esoperator.driver.resolver import NodeResolver, resolve_by_name
from esoperator.exceptions import PodDeletionError, PodNotFoundError
from esoperator.models.cluster_state import ClusterState
from esoperator.models.pod import NamespacedName, Pod


class PodDeleter(Protocol):
    """Anything able to delete a pod; raises PodNotFoundError if it is already gone."""

    async def delete_pod(self, pod: Pod) -> None:
        ...


class DeletionSafety(str, Enum):
    """Why a pod can or cannot be deleted."""
    NOT_IN_CLUSTER = "not_in_cluster"
    NO_DATA = "no_data"
    HOLDS_DATA = "holds_data"

    @property
    def is_safe(self) -> bool:
        return self is not DeletionSafety.HOLDS_DATA


def classify_pod(
    pod: Pod,
    cluster_state: ClusterState,
    resolver: NodeResolver = resolve_by_name,
) -> DeletionSafety:
    """Classify a deletion candidate against one cluster state."""
    node_id = resolver(pod, cluster_state)
    if node_id is None:
        return DeletionSafety.NOT_IN_CLUSTER
    if cluster_state.holds_data(node_id):
        return DeletionSafety.HOLDS_DATA
    return DeletionSafety.NO_DATA


async def evaluate_and_delete(
    candidates: Iterable[Pod],
    cluster_state: Any,
    client: PodDeleter,
    expectations: Expectations,
    key: NamespacedName,
    results: Optional[Results] = None,
    resolver: NodeResolver = resolve_by_name,
    reconcile_state: Optional[ReconcileState] = None,
    requeue: ReconcileResult = DEFAULT_REQUEUE,
) -> Results:
    """
    Delete every candidate pod whose node holds no data.

    Candidates are handled one by one, in order, against the same cluster
    state. One directive is appended to ``results`` per candidate:
    ``requeue`` when the pod was kept or its deletion failed, ``NO_REQUEUE``
    when it was deleted (or was already gone).

    Args:
        candidates: Pods to delete
        cluster_state: ClusterState, or its dict/JSON form
        client: Deletion client
        expectations: Tracker receiving one expected deletion per deleted pod
        key: Identity of the managed Elasticsearch resource
        results: Accumulator to append to (a new one is created if omitted)
        resolver: Pod to node id mapping
        reconcile_state: Receives the pods held back for data migration
        requeue: Directive used for deferred or failed pods

    Returns:
        The results accumulator

    Raises:
        MalformedClusterStateError: if the cluster state is missing or invalid;
            no pod is deleted in that case
        PodDeletionError: if at least one delete call failed; carries the
            directives of every candidate
    """
    state = ClusterState.parse(cluster_state)
    if results is None:
        results = Results()

    errors: Dict[str, Exception] = {}
    for pod in candidates:
        safety = classify_pod(pod, state, resolver)
        if not safety.is_safe:
            if reconcile_state is not None:
                reconcile_state.update_migrating(pod.name)
            results.with_result(requeue)
            continue

        try:
            await client.delete_pod(pod)
        except PodNotFoundError:
            # already gone: no deletion event will come to fulfil an expectation
            results.with_result(NO_REQUEUE)
            continue
        except Exception as e:
            errors[pod.name] = e
            results.with_result(requeue)
            continue

        expectations.expect_deletion(key, pod.name)
        results.with_result(NO_REQUEUE)

    if errors:
        raise PodDeletionError(errors, results)
    return results
