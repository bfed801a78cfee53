"""
Tests for the default driver pod removal step.
"""
import pytest

from esoperator.core.results import DEFAULT_REQUEUE, NO_REQUEUE, Results, requeue_after
from esoperator.core.state import ReconcileState
from esoperator.driver.default import DefaultDriver, DriverOptions
from esoperator.exceptions import KubernetesError, MalformedClusterStateError, PodDeletionError
from esoperator.models.cluster_state import ObservedState
from esoperator.models.pod import ResourcesState

from conftest import FakeKubernetesClient


def _driver(client, expectations, **kwargs):
    return DefaultDriver(DriverOptions(client=client, pods_expectations=expectations, **kwargs))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "to_delete, current, want_results, want_fulfilled",
    [
        # pod deletion is delayed, nothing expected
        (["pod1", "pod2"], ["pod1", "pod2", "pod3"], [DEFAULT_REQUEUE, DEFAULT_REQUEUE], True),
        # pod4 is expected to be deleted
        (["pod4"], ["pod1", "pod2", "pod3", "pod4"], [NO_REQUEUE], False),
    ],
    ids=["do_not_delete_pod_with_migrating_data", "delete_pod_with_no_data"],
)
async def test_attempt_pods_deletion(
    to_delete, current, want_results, want_fulfilled,
    cluster_state, pods, expectations, fake_client, namespaced_name,
):
    driver = _driver(fake_client, expectations)
    results = Results()

    await driver.attempt_pods_deletion(
        [pods[name] for name in to_delete],
        ReconcileState(),
        ResourcesState(current_pods=[pods[name] for name in current]),
        ObservedState(cluster_state=cluster_state),
        results,
        namespaced_name,
    )

    assert results == Results(want_results)
    assert expectations.fulfilled(namespaced_name) is want_fulfilled


@pytest.mark.asyncio
async def test_attempt_pods_deletion_without_cluster_state(
    pods, expectations, fake_client, namespaced_name
):
    driver = _driver(fake_client, expectations)

    with pytest.raises(MalformedClusterStateError):
        await driver.attempt_pods_deletion(
            [pods["pod4"]], ReconcileState(), ResourcesState(), ObservedState(), Results(), namespaced_name
        )

    assert fake_client.delete_calls == {}


@pytest.mark.asyncio
async def test_attempt_pods_deletion_reports_failures(
    cluster_state, pods, expectations, namespaced_name
):
    client = FakeKubernetesClient(failing=["elasticsearch-sample-es-nope"])
    driver = _driver(client, expectations)
    results = Results()

    with pytest.raises(PodDeletionError):
        await driver.attempt_pods_deletion(
            [pods["pod4"], pods["pod1"]],
            ReconcileState(),
            ResourcesState(),
            ObservedState(cluster_state=cluster_state),
            results,
            namespaced_name,
        )

    assert list(results) == [DEFAULT_REQUEUE, DEFAULT_REQUEUE]


@pytest.mark.asyncio
async def test_reconcile_waits_for_unfulfilled_expectations(
    cluster_state, pods, expectations, fake_client, namespaced_name
):
    expectations.expect_deletion(namespaced_name)
    driver = _driver(fake_client, expectations)

    result = await driver.reconcile_deletions(
        namespaced_name, [pods["pod4"]], ObservedState(cluster_state=cluster_state)
    )

    assert result == DEFAULT_REQUEUE
    assert fake_client.delete_calls == {}


@pytest.mark.asyncio
async def test_reconcile_deletes_then_waits(
    cluster_state, pods, expectations, namespaced_name
):
    client = FakeKubernetesClient(pods=list(pods.values()))
    driver = _driver(client, expectations)
    observed = ObservedState(cluster_state=cluster_state)

    first = await driver.reconcile_deletions(namespaced_name, [pods["pod4"]], observed)
    assert first == NO_REQUEUE
    assert client.list_calls == [{
        "namespace": "default",
        "label_selector": "elasticsearch.k8s.elastic.co/cluster-name=elasticsearch-sample",
    }]

    # cache still lists pod4: the driver must not delete it again
    second = await driver.reconcile_deletions(namespaced_name, [pods["pod4"]], observed)
    assert second == DEFAULT_REQUEUE
    assert client.delete_calls == {"elasticsearch-sample-es-nope": 1}

    expectations.observe_deletion(namespaced_name)
    third = await driver.reconcile_deletions(namespaced_name, [], observed)
    assert third == NO_REQUEUE


@pytest.mark.asyncio
async def test_reconcile_records_migrating_pods(
    cluster_state, pods, expectations, fake_client, namespaced_name
):
    driver = _driver(fake_client, expectations, default_requeue=requeue_after(20))
    reconcile_state = ReconcileState()

    result = await driver.reconcile_deletions(
        namespaced_name,
        [pods["pod3"], pods["pod4"]],
        ObservedState(cluster_state=cluster_state),
        resources_state=ResourcesState(current_pods=list(pods.values())),
        reconcile_state=reconcile_state,
    )

    assert result == requeue_after(20)
    assert reconcile_state.migrating_pods == ["elasticsearch-sample-es-jfpqbt2s4q"]
    assert fake_client.list_calls == []


@pytest.mark.asyncio
async def test_reconcile_turns_errors_into_requeue(
    cluster_state, pods, expectations, namespaced_name
):
    client = FakeKubernetesClient(failing=["elasticsearch-sample-es-nope"])
    driver = _driver(client, expectations)
    resources = ResourcesState(current_pods=list(pods.values()))

    failed = await driver.reconcile_deletions(
        namespaced_name, [pods["pod4"]], ObservedState(cluster_state=cluster_state), resources
    )
    malformed = await driver.reconcile_deletions(
        namespaced_name, [pods["pod4"]], ObservedState(), resources
    )

    assert failed == DEFAULT_REQUEUE
    assert malformed == DEFAULT_REQUEUE
    assert expectations.fulfilled(namespaced_name)


class UnreachableApiClient(FakeKubernetesClient):
    async def list_pods(self, namespace, label_selector):
        self.list_calls.append({"namespace": namespace, "label_selector": label_selector})
        raise KubernetesError("Failed to list pods: connection refused")


@pytest.mark.asyncio
async def test_reconcile_requeues_when_pods_cannot_be_listed(
    cluster_state, pods, expectations, namespaced_name
):
    client = UnreachableApiClient()
    driver = _driver(client, expectations, default_requeue=requeue_after(15))

    result = await driver.reconcile_deletions(
        namespaced_name, [pods["pod4"]], ObservedState(cluster_state=cluster_state)
    )

    assert result == requeue_after(15)
    assert len(client.list_calls) == 1
    assert client.delete_calls == {}
    assert expectations.fulfilled(namespaced_name)


def test_driver_defaults_to_configured_requeue(expectations, fake_client):
    driver = _driver(fake_client, expectations)
    assert driver.options.default_requeue == DEFAULT_REQUEUE
