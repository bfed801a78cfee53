"""
Pydantic models for the pods managed on behalf of an Elasticsearch resource.
"""
from typing import Any, Dict, List, NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class NamespacedName(NamedTuple):
    """Identity of a namespaced Kubernetes resource."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class Pod(BaseModel):
    """Minimal pod descriptor consumed by the deletion logic."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str = "default"
    labels: Dict[str, str] = Field(default_factory=dict)

    @property
    def namespaced_name(self) -> NamespacedName:
        return NamespacedName(self.namespace, self.name)

    @classmethod
    def from_k8s(cls, obj: Any) -> "Pod":
        """
        Build a Pod from a kubernetes_asyncio ``V1Pod`` or its raw dict form.

        Watch events carry both, so either is accepted.
        """
        if isinstance(obj, dict):
            metadata = obj.get("metadata") or {}
            return cls(
                name=metadata["name"],
                namespace=metadata.get("namespace") or "default",
                labels=metadata.get("labels") or {},
            )
        metadata = obj.metadata
        return cls(
            name=metadata.name,
            namespace=metadata.namespace or "default",
            labels=metadata.labels or {},
        )


class ResourcesState(BaseModel):
    """Pods currently believed to exist for the managed resource, as cached."""

    current_pods: List[Pod] = Field(default_factory=list)

    def pod_names(self) -> List[str]:
        return [pod.name for pod in self.current_pods]
