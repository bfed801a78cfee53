"""
Mapping from a pod to the Elasticsearch node it runs.

Elasticsearch nodes are named after the pod hosting them, so by default a pod
corresponds to the node whose ``name`` equals the pod name. The mapping is
injectable so drivers and tests can substitute their own convention.
"""
from typing import Callable, Optional

from esoperator.models.cluster_state import ClusterState
from esoperator.models.pod import Pod

NodeResolver = Callable[[Pod, ClusterState], Optional[str]]


def resolve_by_name(pod: Pod, cluster_state: ClusterState) -> Optional[str]:
    """Id of the node named after the pod, or None if the cluster has no such node."""
    return cluster_state.node_id_by_name(pod.name)
