"""
Pytest configuration and fixtures.
"""
from pathlib import Path
from typing import AsyncGenerator, Dict, Iterable, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from esoperator.core.expectations import new_expectations
from esoperator.exceptions import KubernetesError, PodNotFoundError
from esoperator.models.cluster_state import ClusterState
from esoperator.models.pod import NamespacedName, Pod, ResourcesState

FIXTURES = Path(__file__).parent / "fixtures"


class FakeKubernetesClient:
    """In-memory stand-in for KubernetesService."""

    def __init__(
        self,
        failing: Iterable[str] = (),
        missing: Iterable[str] = (),
        pods: Optional[List[Pod]] = None,
    ):
        self.failing = set(failing)
        self.missing = set(missing)
        self.pods = list(pods or [])
        self.deleted: List[str] = []
        self.delete_calls: Dict[str, int] = {}
        self.list_calls: List[Dict[str, str]] = []

    async def delete_pod(self, pod: Pod) -> None:
        self.delete_calls[pod.name] = self.delete_calls.get(pod.name, 0) + 1
        if pod.name in self.failing:
            raise KubernetesError(f"Failed to delete pod {pod.namespace}/{pod.name}: boom")
        if pod.name in self.missing:
            raise PodNotFoundError(pod.namespace, pod.name)
        self.deleted.append(pod.name)

    async def list_pods(self, namespace: str, label_selector: str) -> ResourcesState:
        self.list_calls.append({"namespace": namespace, "label_selector": label_selector})
        return ResourcesState(current_pods=self.pods)


def new_pod(name: str, namespace: str = "default") -> Pod:
    return Pod(name=name, namespace=namespace)


@pytest.fixture(scope="session")
def cluster_state_json() -> str:
    """Cluster state captured from a three node cluster with one index."""
    return (FIXTURES / "cluster_state_sample.json").read_text()


@pytest.fixture
def cluster_state(cluster_state_json) -> ClusterState:
    return ClusterState.from_json(cluster_state_json)


@pytest.fixture
def namespaced_name() -> NamespacedName:
    return NamespacedName("default", "elasticsearch-sample")


@pytest.fixture
def pods() -> Dict[str, Pod]:
    """Pods named after the sample nodes, plus one with no node."""
    return {
        "pod1": new_pod("elasticsearch-sample-es-79gc6p57rs"),
        "pod2": new_pod("elasticsearch-sample-es-fnsgkkdl85"),
        "pod3": new_pod("elasticsearch-sample-es-jfpqbt2s4q"),
        "pod4": new_pod("elasticsearch-sample-es-nope"),
    }


@pytest.fixture
def expectations():
    return new_expectations()


@pytest.fixture
def fake_client() -> FakeKubernetesClient:
    return FakeKubernetesClient()


@pytest_asyncio.fixture
async def test_client() -> AsyncGenerator[AsyncClient, None]:
    """Create test client (lifespan is not run, app state is set per test)."""
    from esoperator.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    for attr in ("driver", "watcher", "expectations"):
        if hasattr(app.state, attr):
            delattr(app.state, attr)
