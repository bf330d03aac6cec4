"""Environment-based configuration for the exporter."""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Exporter configuration.

    All settings can be overridden via environment variables with the
    FDB_EXPORTER_ prefix. For example:
        FDB_EXPORTER_PORT=9191
        FDB_EXPORTER_DELAY_SECONDS=30
        FDB_CLUSTER_FILE=/etc/foundationdb/fdb.cluster

    Values are fixed for the lifetime of the process.
    """

    # Scrape endpoint
    port: int = Field(default=9090, ge=1, le=65535)
    addr: str = "0.0.0.0"

    # Cluster access
    cluster_file: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("FDB_EXPORTER_CLUSTER_FILE", "FDB_CLUSTER_FILE"),
    )
    fetch_mode: Literal["binding", "fdbcli"] = "binding"
    fetch_timeout_seconds: float = Field(default=10.0, gt=0)
    fdbcli_path: str = "fdbcli"
    api_version: int = 710

    # Refresh cadence; FDB_EXPORTER_DELAY is the older spelling
    delay_seconds: float = Field(
        default=15.0,
        gt=0,
        validation_alias=AliasChoices("FDB_EXPORTER_DELAY_SECONDS", "FDB_EXPORTER_DELAY"),
    )

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="FDB_EXPORTER_", populate_by_name=True)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level
