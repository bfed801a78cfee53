"""
In-memory reconcile state of one Elasticsearch resource.

Collects what a reconciliation learned about the resource so the caller can
report it (status persistence itself lives elsewhere).
"""
from enum import Enum
from typing import List


class ClusterPhase(str, Enum):
    """Phase reported for the managed resource."""
    OPERATIONAL = "operational"
    MIGRATING_DATA = "migrating_data"


class ReconcileState:
    """Phase plus the pods whose removal is waiting for data migration."""

    def __init__(self):
        self.phase = ClusterPhase.OPERATIONAL
        self.migrating_pods: List[str] = []

    def update_migrating(self, pod_name: str) -> None:
        """Mark a pod as held back because its node still holds shard data."""
        if pod_name not in self.migrating_pods:
            self.migrating_pods.append(pod_name)
        self.phase = ClusterPhase.MIGRATING_DATA

    @property
    def is_migrating(self) -> bool:
        return self.phase == ClusterPhase.MIGRATING_DATA
