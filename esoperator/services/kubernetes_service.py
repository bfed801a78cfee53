"""
Kubernetes Service - pod access for the Elasticsearch driver.

Wraps the kubernetes_asyncio CoreV1 API. Calls are issued once and never
retried here: a failure is reported to the driver, which expresses the retry
as a requeue.
"""
from typing import Optional

from kubernetes_asyncio import client, config
from kubernetes_asyncio.client import ApiException

from esoperator.config.logging import get_logger
from esoperator.config.settings import settings
from esoperator.exceptions import KubernetesError, PodNotFoundError
from esoperator.models.pod import Pod, ResourcesState

logger = get_logger(__name__)


class KubernetesService:
    """Pod operations against one Kubernetes cluster."""

    def __init__(self, core_api: Optional[client.CoreV1Api] = None):
        """
        Initialize the service.

        Args:
            core_api: Optional CoreV1 API. If not provided, ``initialize`` builds one.
        """
        self.api_client: Optional[client.ApiClient] = None
        self.core_api = core_api

    async def initialize(self) -> None:
        """Load cluster configuration and create the API client."""
        if self.core_api is not None:
            return

        configuration = client.Configuration()
        try:
            if settings.k8s_in_cluster:
                config.load_incluster_config(client_configuration=configuration)
            else:
                await config.load_kube_config(
                    config_file=settings.kubeconfig_path,
                    client_configuration=configuration,
                )
        except Exception as e:
            logger.error(
                "kubernetes_configuration_failed",
                in_cluster=settings.k8s_in_cluster,
                kubeconfig_path=settings.kubeconfig_path,
                error=str(e),
                exc_info=True,
            )
            raise KubernetesError(f"Failed to load Kubernetes configuration: {str(e)}")

        self.api_client = client.ApiClient(configuration=configuration)
        self.core_api = client.CoreV1Api(self.api_client)
        logger.info(
            "kubernetes_client_initialized",
            host=configuration.host,
            in_cluster=settings.k8s_in_cluster,
        )

    async def close(self) -> None:
        """Close the API client."""
        if self.api_client:
            await self.api_client.close()
            self.api_client = None
            logger.info("kubernetes_client_closed")

    async def delete_pod(self, pod: Pod) -> None:
        """
        Delete a pod.

        Raises:
            PodNotFoundError: if the pod no longer exists
            KubernetesError: on any other API failure
        """
        try:
            await self.core_api.delete_namespaced_pod(name=pod.name, namespace=pod.namespace)
        except ApiException as e:
            if e.status == 404:
                logger.debug("pod_already_deleted", pod_name=pod.name, namespace=pod.namespace)
                raise PodNotFoundError(pod.namespace, pod.name)
            logger.error(
                "pod_deletion_failed",
                pod_name=pod.name,
                namespace=pod.namespace,
                status=e.status,
                error=e.reason,
            )
            raise KubernetesError(
                f"Failed to delete pod {pod.namespace}/{pod.name}: {e.reason}",
                details={"status": e.status},
            )

        logger.info("pod_deleted", pod_name=pod.name, namespace=pod.namespace)

    async def list_pods(self, namespace: str, label_selector: str) -> ResourcesState:
        """
        List the pods matching a label selector.

        Raises:
            KubernetesError: if the pods cannot be listed
        """
        try:
            pods = await self.core_api.list_namespaced_pod(
                namespace=namespace, label_selector=label_selector
            )
        except ApiException as e:
            logger.error(
                "pod_listing_failed",
                namespace=namespace,
                label_selector=label_selector,
                status=e.status,
                error=e.reason,
            )
            raise KubernetesError(
                f"Failed to list pods in {namespace}: {e.reason}",
                details={"status": e.status, "label_selector": label_selector},
            )

        return ResourcesState(current_pods=[Pod.from_k8s(item) for item in pods.items])
