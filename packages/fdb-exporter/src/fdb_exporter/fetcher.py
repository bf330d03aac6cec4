"""
Status fetchers.

A fetcher takes no arguments (the cluster is fixed when it is built) and
returns the raw status document as bytes, or raises FetchError.

- FdbStatusFetcher reads \\xff\\xff/status/json through the foundationdb
  Python binding. The binding is blocking, so reads run in a worker thread.
- FdbcliStatusFetcher runs `fdbcli --exec "status json"`, for hosts that
  have the CLI but not a matching client library.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import fdb

from fdb_exporter.errors import FetchError

logger = logging.getLogger(__name__)

STATUS_KEY = b"\xff\xff/status/json"
DEFAULT_API_VERSION = 710


@runtime_checkable
class StatusFetcherProtocol(Protocol):
    """Anything that can produce one raw status document."""

    async def fetch(self) -> bytes:
        """
        Fetch the current status document.

        Returns:
            Raw JSON bytes.

        Raises:
            FetchError: If the cluster could not be reached or returned nothing.
        """
        ...


@dataclass
class FdbStatusFetcher:
    """
    Status fetcher using the FoundationDB client binding.

    The API version is selected and the database opened on first use, so
    building the fetcher never touches the native client.

    Attributes:
        cluster_file: Path to fdb.cluster, None for the client default
        api_version: FoundationDB API version to select
        timeout_seconds: Transaction timeout for the status read

    Example:
        fetcher = FdbStatusFetcher(cluster_file=Path("/etc/foundationdb/fdb.cluster"))
        raw = await fetcher.fetch()
    """

    cluster_file: Path | None = None
    api_version: int = DEFAULT_API_VERSION
    timeout_seconds: float = 10.0
    _db: Any = field(default=None, init=False, repr=False)

    async def fetch(self) -> bytes:
        return await asyncio.to_thread(self._fetch_blocking)

    def _open(self) -> Any:
        if self._db is None:
            cluster_file = str(self.cluster_file) if self.cluster_file else None
            logger.info("Opening FoundationDB database (cluster file: %s)", cluster_file or "default")
            self._db = fdb.open(cluster_file)
        return self._db

    def _fetch_blocking(self) -> bytes:
        # fdb.FDBError only exists once an API version has been selected
        try:
            fdb.api_version(self.api_version)
        except (OSError, RuntimeError) as e:
            raise FetchError("client", f"cannot load FoundationDB client: {e}") from e

        try:
            db = self._open()
            value = self._read_status(db)
        except fdb.FDBError as e:
            cause = "timeout" if e.code == 1031 else "fdb"
            raise FetchError(cause, f"{e.description} (code {e.code})") from e

        if value is None:
            raise FetchError("not_found", "status key is not present")
        return value

    def _read_status(self, db: Any) -> bytes | None:
        tr = db.create_transaction()
        while True:
            try:
                tr.options.set_read_system_keys()
                tr.options.set_timeout(int(self.timeout_seconds * 1000))
                value = tr.get(STATUS_KEY).wait()
                return bytes(value) if value.present() else None
            except fdb.FDBError as e:
                # Raises again for non-retryable errors (including timeout)
                tr.on_error(e).wait()


@dataclass
class FdbcliStatusFetcher:
    """
    Status fetcher shelling out to fdbcli.

    The child process is killed when it outlives the timeout or the fetch
    is cancelled.

    Attributes:
        cluster_file: Path to fdb.cluster, None for fdbcli's default
        fdbcli_path: fdbcli executable
        timeout_seconds: Budget for one fdbcli invocation
    """

    cluster_file: Path | None = None
    fdbcli_path: str = "fdbcli"
    timeout_seconds: float = 10.0

    def command(self) -> list[str]:
        """Build the fdbcli argument list."""
        cmd = [self.fdbcli_path]
        if self.cluster_file:
            cmd += ["-C", str(self.cluster_file)]
        cmd += ["--exec", "status json", "--timeout", str(max(1, int(self.timeout_seconds)))]
        return cmd

    async def fetch(self) -> bytes:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise FetchError("fdbcli", f"cannot run {self.fdbcli_path}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise FetchError("timeout", f"fdbcli did not answer within {self.timeout_seconds}s") from e
        finally:
            # Timed out or cancelled: never leave fdbcli running
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() or f"exit code {proc.returncode}"
            raise FetchError("fdbcli", detail)
        if not stdout.strip():
            raise FetchError("not_found", "fdbcli returned an empty status")
        return stdout
