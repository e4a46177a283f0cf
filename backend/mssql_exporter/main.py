"""Runner for the exporter."""

import asyncio
import signal

from mssql_exporter.api.metrics_server import MetricsServer
from mssql_exporter.core.config import get_settings
from mssql_exporter.core.container import build_container
from mssql_exporter.core.exceptions import ConfigurationError
from mssql_exporter.core.logging import configure_logging
from mssql_exporter.core.logging import logger as global_logger


async def serve() -> None:
    """Build the container, serve scrapes until SIGINT/SIGTERM, then stop."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    logger = global_logger.with_context(context_base="exporter", operation="runner")

    container = build_container(settings)
    server = MetricsServer(container.orchestrator, settings.BIND_HOST, settings.EXPOSE)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await server.start()
    logger.info(
        f"Monitoring {settings.USERNAME}@{settings.SERVER}:{settings.PORT}, "
        f"listening on port {settings.EXPOSE}"
    )
    try:
        await stop.wait()
    finally:
        logger.info("Shutdown requested, closing listener")
        await server.stop()


def main() -> int:
    """Process entry point; returns the exit status."""
    try:
        asyncio.run(serve())
    except ConfigurationError as e:
        configure_logging()
        global_logger.error(str(e))
        return 1
    return 0
