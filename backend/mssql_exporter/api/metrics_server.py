"""HTTP scrape endpoints."""

import traceback
from typing import Awaitable, Callable, Optional

from aiohttp import web

from mssql_exporter.core.logging import logger
from mssql_exporter.domains.collection.orchestrator import CollectionOrchestrator, ScrapeResult

ERROR_HEADER = "X-Error"


class MetricsServer:
    """aiohttp server exposing ``/metrics`` (fast) and ``/metrics-slow`` (slow).

    Every request triggers one collection pass.
    """

    def __init__(self, orchestrator: CollectionOrchestrator, host: str, port: int):
        """Initialize the metrics server.

        Args:
            orchestrator: Runs the collection pass for each request.
            host: The host to listen on.
            port: The port to listen on.
        """
        self.orchestrator = orchestrator
        self.host = host
        self.port = port
        self.app = web.Application()
        self.app.add_routes(
            [
                web.get("/metrics", self.metrics_handler),
                web.get("/metrics-slow", self.slow_metrics_handler),
            ]
        )
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None
        self.logger = logger.with_context(context_base="metrics_server", port=port)

    async def metrics_handler(self, request: web.Request) -> web.Response:
        """Run the fast collection pass."""
        return await self._scrape(self.orchestrator.collect_fast, "/metrics")

    async def slow_metrics_handler(self, request: web.Request) -> web.Response:
        """Run the slow collection pass."""
        return await self._scrape(self.orchestrator.collect_slow, "/metrics-slow")

    async def _scrape(
        self,
        collect: Callable[[], Awaitable[ScrapeResult]],
        endpoint: str,
    ) -> web.Response:
        try:
            result = await collect()
        except Exception as e:
            self.logger.error(f"Error collecting {endpoint}: {e}\n{traceback.format_exc()}")
            return web.Response(text="Error\n", status=500)

        headers = {"Content-Type": result.content_type}
        if result.error:
            headers[ERROR_HEADER] = " ".join(result.error.split())
        return web.Response(body=result.body, status=result.status, headers=headers)

    async def start(self) -> None:
        """Start the AIOHTTP server."""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        self.site = web.TCPSite(self.runner, host=self.host, port=self.port)
        await self.site.start()
        self.logger.info(f"Metrics server listening on http://{self.host}:{self.port}/metrics")

    async def stop(self) -> None:
        """Stops the server gracefully."""
        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()
