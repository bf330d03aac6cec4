"""
RefreshLoop: periodic fetch, parse, map and publish.

Two states:
- IDLE: waiting for the next tick
- REFRESHING: fetch + parse + map in progress

Ticks are measured from the start of the previous cycle. Cycles run one at
a time inside run(), so fetches never overlap; a cycle that outlives one or
more ticks simply skips them.

Every cycle publishes a snapshot. A failed cycle publishes a STALE snapshot
with no samples and the failure cause; it never stops the loop. Shutdown
uses an asyncio.Event and wait_for with a timeout as an interruptible sleep.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum

from fdb_exporter.errors import FetchError, MappingFault, ParseError
from fdb_exporter.fetcher import StatusFetcherProtocol
from fdb_exporter.metrics.collector import RefreshMetrics
from fdb_exporter.metrics.mapper import map_status
from fdb_exporter.parser import parse_status
from fdb_exporter.snapshot import Snapshot, SnapshotStore

logger = logging.getLogger(__name__)


class RefreshState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshLoop:
    """
    Long-running task that keeps the SnapshotStore current.

    Example:
        store = SnapshotStore()
        loop = RefreshLoop(fetcher=FdbStatusFetcher(), store=store, interval_seconds=15)
        task = asyncio.create_task(loop.run())
        ...
        loop.stop()
        await task
    """

    def __init__(
        self,
        fetcher: StatusFetcherProtocol,
        store: SnapshotStore,
        interval_seconds: float = 15.0,
        metrics: RefreshMetrics | None = None,
    ) -> None:
        """
        Initialize refresh loop.

        Args:
            fetcher: Source of raw status documents
            store: Store the produced snapshots are published to
            interval_seconds: Seconds between cycle starts
            metrics: Optional self-metrics to record cycle outcomes in
        """
        self.fetcher = fetcher
        self.store = store
        self.interval = interval_seconds
        self.metrics = metrics
        self._shutdown = asyncio.Event()
        self._state = RefreshState.IDLE
        self._sequence = 0
        self.skipped_ticks = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    async def run(self) -> None:
        """Refresh on every tick until stop() is called."""
        loop = asyncio.get_running_loop()
        logger.info("Refresh loop starting (interval: %ss)", self.interval)

        while not self._shutdown.is_set():
            cycle_start = loop.time()
            await self.refresh_once()

            now = loop.time()
            next_tick = cycle_start + self.interval
            if now > next_tick:
                skipped = int((now - cycle_start) // self.interval)
                self.skipped_ticks += skipped
                next_tick = cycle_start + self.interval * (skipped + 1)
                logger.warning(
                    "Refresh took %.2fs, skipping %d tick(s)", now - cycle_start, skipped
                )

            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=next_tick - now)
            except asyncio.TimeoutError:
                pass  # Normal tick

        logger.info("Refresh loop stopped")

    def stop(self) -> None:
        """Ask run() to return after the current cycle."""
        self._shutdown.set()

    async def refresh_once(self) -> Snapshot:
        """
        Run one cycle and publish its snapshot.

        All cycle failures are contained here; the returned snapshot is the
        one that was published.
        """
        self._state = RefreshState.REFRESHING
        self._sequence += 1
        refreshed_at = datetime.now(timezone.utc)
        started = time.perf_counter()
        cause = None

        try:
            raw = await self.fetcher.fetch()
            result = parse_status(raw)
            samples = map_status(result.status)
        except FetchError as e:
            cause, error = e.cause, str(e)
            logger.warning("Refresh %d failed: %s", self._sequence, e)
        except ParseError as e:
            cause, error = "parse", str(e)
            logger.warning("Refresh %d failed: %s", self._sequence, e)
        except MappingFault as e:
            cause, error = "mapping", str(e)
            logger.exception("Refresh %d hit a mapping fault", self._sequence)
        except Exception as e:
            # Log but don't crash the loop on unexpected failures
            cause, error = "internal", f"{type(e).__name__}: {e}"
            logger.exception("Refresh %d failed unexpectedly", self._sequence)
        finally:
            self._state = RefreshState.IDLE

        if cause is None:
            snapshot = Snapshot.ok(samples, self._sequence, refreshed_at, result.anomalies)
            if result.anomalies:
                logger.info(
                    "Refresh %d ignored %d malformed status field(s)",
                    self._sequence,
                    len(result.anomalies),
                )
        else:
            snapshot = Snapshot.stale(self._sequence, refreshed_at, error)

        self.store.publish(snapshot)

        if self.metrics is not None:
            self.metrics.record_refresh(snapshot.status.value, time.perf_counter() - started)
            if cause is not None:
                self.metrics.record_error(cause)

        return snapshot
