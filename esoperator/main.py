"""
Operator process entry point.

Runs the pod deletion watcher in the background and serves the health probes.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Tuple

from fastapi import FastAPI

from esoperator.api import health
from esoperator.config.logging import configure_logging, get_logger
from esoperator.config.settings import settings
from esoperator.core.expectations import new_expectations
from esoperator.driver.default import DefaultDriver, DriverOptions
from esoperator.services.kubernetes_service import KubernetesService
from esoperator.workers.pod_watcher import PodDeletionWatcher

# Configure logging
configure_logging()
logger = get_logger(__name__)


def build_components(kubernetes: KubernetesService) -> Tuple[DefaultDriver, PodDeletionWatcher]:
    """
    Wire the driver and the deletion watcher around one expectations tracker.

    The driver registers the deletions it issues and the watcher confirms
    them, so both must share the same instance.
    """
    expectations = new_expectations()
    driver = DefaultDriver(DriverOptions(client=kubernetes, pods_expectations=expectations))
    watcher = PodDeletionWatcher(
        kubernetes.core_api,
        expectations,
        namespace=settings.k8s_namespace,
    )
    return driver, watcher


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    Startup creates the Kubernetes client, the driver and the watcher that
    confirms the driver's pod deletions, then starts the watcher. Shutdown
    stops both.
    """
    logger.info(
        "operator_starting",
        version=settings.app_version,
        environment=settings.environment,
    )

    kubernetes = KubernetesService()
    await kubernetes.initialize()

    driver, watcher = build_components(kubernetes)
    app.state.kubernetes = kubernetes
    app.state.expectations = driver.options.pods_expectations
    app.state.driver = driver
    app.state.watcher = watcher

    watcher_task = asyncio.create_task(watcher.start())
    logger.info("operator_started")

    yield

    logger.info("operator_shutting_down")
    await watcher.stop()
    watcher_task.cancel()
    try:
        await asyncio.wait_for(asyncio.gather(watcher_task, return_exceptions=True), timeout=30.0)
    except asyncio.TimeoutError:
        logger.warning("pod_watcher_shutdown_timeout")

    await kubernetes.close()
    logger.info("operator_shutdown_complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

app.include_router(health.router, prefix="/health", tags=["Health"])


if __name__ == "__main__":
    import uvicorn

    try:
        uvicorn.run(
            "esoperator.main:app",
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    except (KeyboardInterrupt, SystemExit):
        logger.info("operator_stopped")
