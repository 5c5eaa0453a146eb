"""Configuration loading for diffmetrik."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_FILE = "diffmetrik.yaml"


@dataclass
class StoreConfig:
    """Snapshot store settings."""

    file_name: str = "diffmetrik.json"
    min_duration_seconds: float = 2.0
    debug: bool = False


@dataclass
class SourceConfig:
    """Host metric source settings."""

    # interface name prefixes; empty means every non-loopback interface
    network_interfaces: list[str] = field(default_factory=list)
    include_loopback: bool = False


@dataclass
class DiffmetrikConfig:
    """Top-level diffmetrik configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    source: SourceConfig = field(default_factory=SourceConfig)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _dict_to_config(data: dict[str, Any]) -> DiffmetrikConfig:
    """Convert a raw dictionary to a DiffmetrikConfig dataclass."""
    store_data = _section(data, "store")
    source_data = _section(data, "source")

    return DiffmetrikConfig(
        store=StoreConfig(**{
            k: v for k, v in store_data.items()
            if k in StoreConfig.__dataclass_fields__
        }),
        source=SourceConfig(**{
            k: v for k, v in source_data.items()
            if k in SourceConfig.__dataclass_fields__
        }),
    )


def load_config(path: str | Path | None = None) -> DiffmetrikConfig:
    """Load configuration from a YAML file.

    Looks for ``diffmetrik.yaml`` in the current directory if *path* is None.
    A missing file yields the defaults.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path(DEFAULT_CONFIG_FILE)
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    return _dict_to_config(data)
