"""fdb-exporter CLI.

Commands:
- run: start the scrape server and the refresh loop
- status: fetch, parse and map one status document and print the result

Options fall back to FDB_EXPORTER_* environment variables through Settings.
Invalid configuration exits with code 1 before anything starts.
"""

import asyncio
import json
import logging
from pathlib import Path

import typer
import uvicorn
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from fdb_exporter.config import Settings
from fdb_exporter.errors import FetchError, MappingFault, ParseError
from fdb_exporter.fetcher import FdbcliStatusFetcher, FdbStatusFetcher, StatusFetcherProtocol
from fdb_exporter.metrics.mapper import map_status
from fdb_exporter.parser import parse_status
from fdb_exporter.server import create_app

app = typer.Typer(
    name="fdb-exporter",
    help="Prometheus exporter for FoundationDB cluster status",
    no_args_is_help=True,
)

console = Console()


def load_settings(**overrides) -> Settings:
    """Build Settings from the environment plus explicit CLI overrides."""
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red]\n{e}")
        raise typer.Exit(1)


def configure_logging(level: str) -> None:
    """Route all logging through a single rich handler."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def build_fetcher(settings: Settings) -> StatusFetcherProtocol:
    """Create the fetcher selected by settings.fetch_mode."""
    if settings.fetch_mode == "fdbcli":
        return FdbcliStatusFetcher(
            cluster_file=settings.cluster_file,
            fdbcli_path=settings.fdbcli_path,
            timeout_seconds=settings.fetch_timeout_seconds,
        )
    return FdbStatusFetcher(
        cluster_file=settings.cluster_file,
        api_version=settings.api_version,
        timeout_seconds=settings.fetch_timeout_seconds,
    )


@app.command("run")
def run_exporter(
    port: int = typer.Option(None, "--port", "-p", help="Listening port of the web server"),
    addr: str = typer.Option(None, "--addr", "-a", help="Listen address, IPv4 or IPv6"),
    cluster_file: Path = typer.Option(None, "--cluster", "-c", help="Location of the fdb.cluster file"),
    delay: float = typer.Option(
        None, "--delay", "-d", help="Seconds between two refreshes of the status and metrics"
    ),
    fetch_mode: str = typer.Option(None, "--fetch-mode", help="binding or fdbcli"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
) -> None:
    """
    Run the exporter.

    Serves /metrics and /health and refreshes the cluster status every
    --delay seconds until interrupted with Ctrl+C.

    Environment variables:
        FDB_EXPORTER_PORT, FDB_EXPORTER_ADDR, FDB_CLUSTER_FILE,
        FDB_EXPORTER_DELAY_SECONDS, FDB_EXPORTER_FETCH_MODE
    """
    settings = load_settings(
        port=port,
        addr=addr,
        cluster_file=cluster_file,
        delay_seconds=delay,
        fetch_mode=fetch_mode,
        log_level=log_level,
    )
    configure_logging(settings.log_level)

    logger = logging.getLogger("fdb_exporter")
    logger.info("Listening on http://%s:%d", settings.addr, settings.port)
    logger.info("Cluster file: %s", settings.cluster_file or "default")
    logger.info("Refresh every %ss via %s", settings.delay_seconds, settings.fetch_mode)

    exporter = create_app(build_fetcher(settings), interval_seconds=settings.delay_seconds)
    uvicorn.run(
        exporter,
        host=settings.addr,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


@app.command("status")
def show_status(
    cluster_file: Path = typer.Option(None, "--cluster", "-c", help="Location of the fdb.cluster file"),
    fetch_mode: str = typer.Option(None, "--fetch-mode", help="binding or fdbcli"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output samples as JSON"),
) -> None:
    """Fetch the status once and print the metrics it maps to."""
    settings = load_settings(cluster_file=cluster_file, fetch_mode=fetch_mode, log_level="WARNING")
    configure_logging(settings.log_level)
    fetcher = build_fetcher(settings)

    try:
        raw = asyncio.run(fetcher.fetch())
        result = parse_status(raw)
        samples = map_status(result.status)
    except (FetchError, ParseError, MappingFault) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        data = [
            {"name": s.name, "kind": s.kind.value, "labels": s.labels, "value": s.value}
            for s in samples
        ]
        print(json.dumps(data, indent=2))
        return

    table = Table(title=f"Samples ({len(samples)})")
    table.add_column("Metric", style="cyan")
    table.add_column("Kind")
    table.add_column("Labels")
    table.add_column("Value", justify="right", style="green")
    for s in samples:
        labels = ", ".join(f'{k}="{v}"' for k, v in s.labels.items())
        table.add_row(s.name, s.kind.value, labels, f"{s.value:g}")
    console.print(table)

    if result.anomalies:
        anomalies = Table(title="Ignored fields")
        anomalies.add_column("Path", style="yellow")
        anomalies.add_column("Expected")
        anomalies.add_column("Actual")
        for a in result.anomalies:
            anomalies.add_row(a.path, a.expected, a.actual)
        console.print(anomalies)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
