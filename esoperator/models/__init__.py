from esoperator.models.cluster_state import ClusterState, Node, ObservedState, Shard
from esoperator.models.pod import NamespacedName, Pod, ResourcesState

__all__ = [
    "ClusterState",
    "Node",
    "ObservedState",
    "Shard",
    "NamespacedName",
    "Pod",
    "ResourcesState",
]
