"""Mini README: Where the export endpoint and its on/off switch are kept.

Structure:
    * ExportConfig - endpoint URL plus enabled flag.
    * ConfigStorage - load/save protocol injected into the synchroniser.
    * MemoryConfigStorage - process-local storage for tests and embedding.
    * JsonConfigStorage - ``export_config.json`` in the data directory,
      seeded from ``FurnledgerSettings`` until the first save.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

from ..configuration import FurnledgerSettings
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ExportConfig:
    endpoint_url: Optional[str] = None
    enabled: bool = False

    @property
    def is_active(self) -> bool:
        """Exports only run when switched on and pointed somewhere."""

        return self.enabled and bool(self.endpoint_url)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExportConfig":
        url = data.get("endpointUrl")
        if url is not None and not isinstance(url, str):
            raise ValueError("endpointUrl must be a string")
        return cls(endpoint_url=(url or "").strip() or None, enabled=bool(data.get("enabled", False)))

    @classmethod
    def from_settings(cls, settings: FurnledgerSettings) -> "ExportConfig":
        return cls(endpoint_url=settings.export_endpoint_url, enabled=settings.export_enabled)

    def as_dict(self) -> Dict[str, Any]:
        return {"endpointUrl": self.endpoint_url, "enabled": self.enabled}


class ConfigStorage(Protocol):
    def load(self) -> ExportConfig: ...

    def save(self, config: ExportConfig) -> None: ...


class MemoryConfigStorage:
    def __init__(self, config: Optional[ExportConfig] = None) -> None:
        self._config = config or ExportConfig()

    def load(self) -> ExportConfig:
        return self._config

    def save(self, config: ExportConfig) -> None:
        self._config = config


class JsonConfigStorage:
    """Persist the export configuration as a small JSON document."""

    def __init__(self, path: Path, default: Optional[ExportConfig] = None) -> None:
        self._path = path
        self._default = default or ExportConfig()

    @classmethod
    def from_settings(cls, settings: FurnledgerSettings) -> "JsonConfigStorage":
        return cls(settings.export_config_file, ExportConfig.from_settings(settings))

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ExportConfig:
        if not self._path.exists():
            return self._default
        try:
            return ExportConfig.from_dict(json.loads(self._path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as error:
            LOGGER.warning("Ignoring unreadable export config %s: %s", self._path, error)
            return self._default

    def save(self, config: ExportConfig) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(config.as_dict(), indent=2), encoding="utf-8")
        LOGGER.info("Saved export config to %s (enabled=%s)", self._path, config.enabled)
