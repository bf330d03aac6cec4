"""FastAPI application serving the scrape and health endpoints."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from fdb_exporter import __version__
from fdb_exporter.fetcher import StatusFetcherProtocol
from fdb_exporter.metrics.collector import build_registry, render
from fdb_exporter.refresh import RefreshLoop
from fdb_exporter.snapshot import SnapshotStatus, SnapshotStore

logger = logging.getLogger(__name__)

# How long shutdown waits for an in-flight refresh before abandoning it
SHUTDOWN_GRACE_SECONDS = 5.0


def create_app(
    fetcher: StatusFetcherProtocol,
    interval_seconds: float = 15.0,
    store: SnapshotStore | None = None,
    start_refresh: bool = True,
) -> FastAPI:
    """
    Build the exporter application.

    Args:
        fetcher: Source of raw status documents
        interval_seconds: Seconds between refresh cycle starts
        store: Snapshot store to serve from (a new one if None)
        start_refresh: Start the RefreshLoop in the app lifespan

    Returns:
        FastAPI app with /metrics and /health. The store, registry and
        refresh loop are available on app.state.
    """
    store = store if store is not None else SnapshotStore()
    registry, refresh_metrics = build_registry(store)
    refresh_loop = RefreshLoop(
        fetcher=fetcher,
        store=store,
        interval_seconds=interval_seconds,
        metrics=refresh_metrics,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the refresh loop on startup, stop it on shutdown."""
        task = asyncio.create_task(refresh_loop.run()) if start_refresh else None

        yield

        refresh_loop.stop()
        if task is not None:
            try:
                await asyncio.wait_for(task, timeout=SHUTDOWN_GRACE_SECONDS)
            except asyncio.TimeoutError:
                # wait_for cancelled the task; the store keeps its last snapshot
                logger.warning("Abandoned in-flight refresh on shutdown")

    app = FastAPI(
        title="FoundationDB Exporter",
        description="Prometheus metrics derived from FoundationDB cluster status",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.registry = registry
    app.state.refresh_loop = refresh_loop

    @app.get("/metrics")
    async def metrics() -> Response:
        """Scrape endpoint. 503 with an empty body until a refresh succeeds."""
        if not store.current().available:
            return Response(status_code=503)
        return Response(content=render(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health() -> JSONResponse:
        """Outcome of the refresh behind the visible snapshot."""
        snapshot = store.current()
        body = {
            "status": snapshot.status.value,
            "sequence": snapshot.sequence,
            "refreshed_at": snapshot.refreshed_at.isoformat() if snapshot.refreshed_at else None,
            "error": snapshot.error,
            "anomalies": len(snapshot.anomalies),
            "samples": len(snapshot.samples),
        }
        status_code = 200 if snapshot.status is SnapshotStatus.OK else 503
        return JSONResponse(body, status_code=status_code)

    return app
