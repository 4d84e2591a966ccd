"""Mini README: Centralised configuration models and helpers for Furnledger.

Structure:
    * FurnledgerSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Import ``get_settings`` to read environment variables (prefixed with
    ``FURNLEDGER_``), choose where the ledger mirror and export configuration
    are stored, and seed the webhook export defaults. The configuration is
    cached so the cost of validation is incurred only once per process.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class FurnledgerSettings(BaseSettings):
    """Runtime configuration for the financial tracking service."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    data_directory: Path = Field(
        Path("data"),
        description="Directory holding the ledger mirror and export configuration.",
    )
    state_file_name: str = Field(
        "dashboard_state.json",
        description="File name of the JSON ledger mirror inside the data directory.",
    )
    log_level: str = Field(
        "INFO",
        description="Threshold for ledger, store and export log records (DEBUG, INFO, ...).",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the HTTP service to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Default port the HTTP service exposes.",
        ge=1,
        le=65535,
    )
    export_endpoint_url: Optional[str] = Field(
        None,
        description=(
            "Webhook receiving the consolidated snapshot. Leave unset to rely on"
            " the spreadsheet download instead."
        ),
    )
    export_enabled: bool = Field(
        False,
        description="Whether state changes are pushed to the webhook automatically.",
    )
    export_debounce_seconds: float = Field(
        5.0,
        description="Quiet period after the last edit before the snapshot is sent.",
        gt=0,
    )
    export_timeout_seconds: float = Field(
        30.0,
        description="Timeout applied to each webhook request.",
        gt=0,
    )

    class Config:
        env_prefix = "FURNLEDGER_"
        env_file = ".env"
        case_sensitive = False

    @validator("data_directory", pre=True)
    def _expand_path(cls, value: Optional[str | Path]) -> Path:
        """Ensure configured paths expand user directories and exist."""

        path = Path(value).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def state_file(self) -> Path:
        """Location of the JSON mirror used by the bundled persistence adapter."""

        return self.data_directory / self.state_file_name

    @property
    def export_config_file(self) -> Path:
        """Location where the webhook configuration is persisted."""

        return self.data_directory / "export_config.json"


@lru_cache()
def get_settings() -> FurnledgerSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return FurnledgerSettings()
