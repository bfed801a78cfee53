"""
Default Elasticsearch driver: pod removal step of a reconciliation.

The driver is handed the pods that should go away (computed elsewhere) and
the latest observed cluster state. It refuses to act while deletions issued
by an earlier run are not yet visible, runs the safe deletion evaluation,
reports what happened and turns the collected directives into a single
result for the scheduler.
"""
from datetime import timedelta
from typing import List, Optional

from esoperator.config.logging import get_logger
from esoperator.config.settings import settings
from esoperator.core.expectations import Expectations
from esoperator.core.results import (
    DEFAULT_REQUEUE,
    NO_REQUEUE,
    REQUEUE,
    ReconcileResult,
    Results,
    requeue_after,
)
from esoperator.core.state import ReconcileState
from esoperator.driver.deletion import evaluate_and_delete
from esoperator.driver.resolver import NodeResolver, resolve_by_name
from esoperator.exceptions import KubernetesError, MalformedClusterStateError, PodDeletionError
from esoperator.models.cluster_state import ObservedState
from esoperator.models.pod import NamespacedName, Pod, ResourcesState
from esoperator.services.kubernetes_service import KubernetesService

logger = get_logger(__name__)


def aggregate_results(results: Results) -> ReconcileResult:
    """
    Collapse directives into the one handed to the scheduler.

    Requeue if any directive asks for it, as soon as the shortest requested
    delay elapses; immediately if a requeue carries no delay.
    """
    requeues = [r for r in results if not r.is_terminal]
    if not requeues:
        return NO_REQUEUE

    delays = [r.requeue_after for r in requeues if r.requeue_after > timedelta(0)]
    if len(delays) < len(requeues):
        return REQUEUE
    return requeue_after(min(delays))


class DriverOptions:
    """Collaborators of a driver instance."""

    def __init__(
        self,
        client: KubernetesService,
        pods_expectations: Expectations,
        resolver: NodeResolver = resolve_by_name,
        default_requeue: Optional[ReconcileResult] = None,
    ):
        self.client = client
        self.pods_expectations = pods_expectations
        self.resolver = resolver
        self.default_requeue = default_requeue or DEFAULT_REQUEUE


class DefaultDriver:
    """Removes Elasticsearch pods once their node no longer holds data."""

    def __init__(self, options: DriverOptions):
        self.options = options

    async def current_pods(self, namespaced_name: NamespacedName) -> ResourcesState:
        """Pods labelled as belonging to the Elasticsearch resource."""
        return await self.options.client.list_pods(
            namespace=namespaced_name.namespace,
            label_selector=f"{settings.cluster_name_label}={namespaced_name.name}",
        )

    async def attempt_pods_deletion(
        self,
        to_delete: List[Pod],
        reconcile_state: ReconcileState,
        resources_state: ResourcesState,
        observed_state: ObservedState,
        results: Results,
        namespaced_name: NamespacedName,
    ) -> Results:
        """
        Delete the pods of ``to_delete`` that are safe to remove.

        Directives are appended to ``results``, also when an error is raised.

        Raises:
            MalformedClusterStateError: if no usable cluster state was observed
            PodDeletionError: if some delete calls failed
        """
        log = logger.bind(
            namespace=namespaced_name.namespace,
            cluster=namespaced_name.name,
        )
        log.debug(
            "attempting_pods_deletion",
            candidates=[pod.name for pod in to_delete],
            current_pods=len(resources_state.current_pods),
        )

        try:
            await evaluate_and_delete(
                to_delete,
                observed_state.cluster_state,
                self.options.client,
                self.options.pods_expectations,
                namespaced_name,
                results=results,
                resolver=self.options.resolver,
                reconcile_state=reconcile_state,
                requeue=self.options.default_requeue,
            )
        except MalformedClusterStateError as e:
            log.warning("pods_deletion_skipped_malformed_cluster_state", error=e.message)
            raise
        except PodDeletionError as e:
            log.error("pods_deletion_failed", failed_pods=sorted(e.errors), errors=e.details)
            raise
        finally:
            if reconcile_state.migrating_pods:
                log.info(
                    "pods_deletion_delayed_data_migration",
                    pods=reconcile_state.migrating_pods,
                )

        log.info(
            "pods_deletion_attempted",
            pending_deletions=self.options.pods_expectations.pending_deletions(namespaced_name),
        )
        return results

    async def reconcile_deletions(
        self,
        namespaced_name: NamespacedName,
        to_delete: List[Pod],
        observed_state: ObservedState,
        resources_state: Optional[ResourcesState] = None,
        reconcile_state: Optional[ReconcileState] = None,
    ) -> ReconcileResult:
        """
        Run the pod removal step for one resource and return the scheduler directive.

        Errors are logged and turned into requeues.
        """
        expectations = self.options.pods_expectations
        if not expectations.fulfilled(namespaced_name):
            logger.info(
                "pods_deletion_waiting_for_expectations",
                namespace=namespaced_name.namespace,
                cluster=namespaced_name.name,
                pending_deletions=expectations.pending_deletions(namespaced_name),
            )
            return self.options.default_requeue

        if not to_delete:
            return NO_REQUEUE

        if reconcile_state is None:
            reconcile_state = ReconcileState()

        results = Results()
        try:
            if resources_state is None:
                resources_state = await self.current_pods(namespaced_name)
            await self.attempt_pods_deletion(
                to_delete,
                reconcile_state,
                resources_state,
                observed_state,
                results,
                namespaced_name,
            )
        except MalformedClusterStateError:
            return self.options.default_requeue
        except KubernetesError as e:
            logger.error(
                "pods_listing_failed",
                namespace=namespaced_name.namespace,
                cluster=namespaced_name.name,
                error=e.message,
            )
            return self.options.default_requeue
        except PodDeletionError as e:
            results = e.results

        return aggregate_results(results)
