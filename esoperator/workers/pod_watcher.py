"""
Pod watcher feeding the deletion expectations.

Watches Elasticsearch pods and, each time one the operator deleted is reported
gone, records the observation for the owning resource so the driver stops
waiting for it.

The watch resumes from the last resource version it saw, so stream timeouts
and transient errors lose no event. When that version has expired (HTTP 410)
the pods are listed again and every pending deletion whose pod is missing
from the listing is considered observed.
"""
import asyncio
from typing import Any, Callable, Dict, Optional, Set, Tuple

from kubernetes_asyncio import client, watch
from kubernetes_asyncio.client import ApiException

from esoperator.config.logging import get_logger
from esoperator.config.settings import settings
from esoperator.core.expectations import Expectations
from esoperator.models.pod import NamespacedName, Pod

logger = get_logger(__name__)


def _resource_version(obj: Any) -> Optional[str]:
    if isinstance(obj, dict):
        return (obj.get("metadata") or {}).get("resourceVersion")
    metadata = getattr(obj, "metadata", None)
    return getattr(metadata, "resource_version", None)


class PodDeletionWatcher:
    """
    Observes pod deletions and fulfils the matching expectations.

    Only pods carrying the cluster name label are watched; the label value
    names the Elasticsearch resource in the pod's namespace.
    """

    def __init__(
        self,
        core_api: client.CoreV1Api,
        expectations: Expectations,
        namespace: Optional[str] = None,
        cluster_label: Optional[str] = None,
        watch_factory: Callable[[], watch.Watch] = watch.Watch,
    ):
        self.core_api = core_api
        self.expectations = expectations
        self.namespace = namespace
        self.cluster_label = cluster_label or settings.cluster_name_label
        self.running = False
        self.resource_version: Optional[str] = None
        self._watch_factory = watch_factory
        self._watch: Optional[watch.Watch] = None

    def _owner(self, pod: Pod) -> Optional[NamespacedName]:
        cluster_name = pod.labels.get(self.cluster_label)
        if not cluster_name:
            return None
        return NamespacedName(pod.namespace, cluster_name)

    def handle_event(self, event: Dict[str, Any]) -> Optional[NamespacedName]:
        """
        Apply one watch event.

        Returns:
            Key of the resource whose expectations were updated, or None
        """
        obj = event.get("raw_object") or event.get("object")
        if obj is None:
            return None

        version = _resource_version(obj)
        if version:
            self.resource_version = version

        if event.get("type") != "DELETED":
            return None

        pod = Pod.from_k8s(obj)
        key = self._owner(pod)
        if key is None:
            return None

        if not self.expectations.observe_deletion(key, pod.name):
            return None
        logger.debug(
            "pod_deletion_observed",
            pod_name=pod.name,
            namespace=pod.namespace,
            cluster=key.name,
            pending_deletions=self.expectations.pending_deletions(key),
        )
        return key

    def _list_function(self):
        if self.namespace:
            return self.core_api.list_namespaced_pod, {"namespace": self.namespace}
        return self.core_api.list_pod_for_all_namespaces, {}

    async def resync(self) -> None:
        """
        List the labelled pods and settle pending deletions against the listing.

        Pending deletions whose pod is absent from the listing happened while
        no watch was running. The watch restarts from the listing's version.
        """
        func, kwargs = self._list_function()
        pods = await func(label_selector=self.cluster_label, **kwargs)

        present: Set[Tuple[NamespacedName, str]] = set()
        for item in pods.items:
            pod = Pod.from_k8s(item)
            key = self._owner(pod)
            if key is not None:
                present.add((key, pod.name))

        settled = 0
        for key in self.expectations.snapshot():
            if self.namespace and key.namespace != self.namespace:
                continue
            for pod_name in self.expectations.pending_pods(key):
                if (key, pod_name) not in present:
                    if self.expectations.observe_deletion(key, pod_name):
                        settled += 1

        self.resource_version = pods.metadata.resource_version
        logger.info(
            "pod_watch_resynced",
            pods=len(pods.items),
            settled_deletions=settled,
            resource_version=self.resource_version,
        )

    async def _watch_once(self) -> None:
        func, kwargs = self._list_function()
        self._watch = self._watch_factory()
        async with self._watch.stream(
            func,
            label_selector=self.cluster_label,
            resource_version=self.resource_version,
            timeout_seconds=settings.watch_timeout_seconds,
            **kwargs,
        ) as stream:
            async for event in stream:
                if event.get("type") == "ERROR":
                    raw = event.get("raw_object") or {}
                    raise ApiException(status=raw.get("code"), reason=raw.get("reason"))
                self.handle_event(event)
                if not self.running:
                    break

    async def start(self):
        """Watch pods until stopped, resuming the stream when it ends or fails."""
        self.running = True
        logger.info(
            "pod_watcher_started",
            namespace=self.namespace or "all",
            label=self.cluster_label,
        )

        while self.running:
            try:
                if self.resource_version is None:
                    await self.resync()
                await self._watch_once()
            except asyncio.CancelledError:
                logger.info("pod_watcher_cancelled")
                break
            except ApiException as e:
                if e.status == 410:
                    logger.info("pod_watch_expired", resource_version=self.resource_version)
                    self.resource_version = None
                    continue
                logger.error("pod_watch_api_error", status=e.status, error=e.reason)
                await asyncio.sleep(settings.watch_retry_seconds)
            except Exception as e:
                logger.error("pod_watch_error", error=str(e), exc_info=True)
                await asyncio.sleep(settings.watch_retry_seconds)

        self.running = False
        logger.info("pod_watcher_stopped")

    async def stop(self):
        """Stop watching pods."""
        logger.info("pod_watcher_stopping")
        self.running = False
        if self._watch is not None:
            self._watch.stop()
