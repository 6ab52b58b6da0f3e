"""Configuration contracts for an intake deployment.

Everything the intake service depends on is passed in explicitly; nothing is
resolved from process-wide state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

STORAGE_TYPES: tuple[str, ...] = ("memory", "duckdb")
FORWARDER_TYPES: tuple[str, ...] = ("outbox", "recording")


@dataclass(frozen=True)
class IntakeSettings:
    """Settings injected into the command processor."""

    site: str

    def __post_init__(self) -> None:
        if not self.site.strip():
            raise ValueError("Managing site cannot be empty")


@dataclass(frozen=True)
class StorageConfig:
    type: str = "memory"
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ForwarderConfig:
    type: str = "recording"
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IntakeConfig:
    """Full description of how to assemble an intake service."""

    site: str
    storage: StorageConfig = field(default_factory=StorageConfig)
    forwarder: ForwarderConfig = field(default_factory=ForwarderConfig)
    catalog_path: Path | None = None

    @property
    def settings(self) -> IntakeSettings:
        return IntakeSettings(site=self.site)


class IntakeConfigLoader:
    """Load intake configuration JSON.

    Relative ``params`` paths and ``catalog_path`` are resolved against the
    directory holding the config file.
    """

    _PATH_PARAMS = {"db_path", "outbox_dir"}

    def load(self, path: str | Path) -> IntakeConfig:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Intake config not found: {config_path}")
        payload = json.loads(config_path.read_text())
        return self.parse(payload, base_dir=config_path.resolve().parent)

    def parse(self, payload: Mapping[str, Any], *, base_dir: Path | None = None) -> IntakeConfig:
        site = str(payload.get("site", "")).strip()
        if not site:
            raise ValueError("Intake config must define a non-empty 'site'")

        storage_raw = payload.get("storage", {})
        storage = StorageConfig(
            type=self._checked_type(storage_raw, STORAGE_TYPES, "storage", default="memory"),
            params=self._resolve_params(storage_raw.get("params", {}), base_dir),
        )

        forwarder_raw = payload.get("forwarder", {})
        forwarder = ForwarderConfig(
            type=self._checked_type(forwarder_raw, FORWARDER_TYPES, "forwarder", default="recording"),
            params=self._resolve_params(forwarder_raw.get("params", {}), base_dir),
        )

        catalog_path = payload.get("catalog_path")
        return IntakeConfig(
            site=site,
            storage=storage,
            forwarder=forwarder,
            catalog_path=self._resolve_path(catalog_path, base_dir) if catalog_path else None,
        )

    @staticmethod
    def _checked_type(
        raw: Mapping[str, Any],
        allowed: tuple[str, ...],
        section: str,
        *,
        default: str,
    ) -> str:
        if not isinstance(raw, Mapping):
            raise ValueError(f"Intake config '{section}' must be an object")
        value = str(raw.get("type", default)).strip().lower()
        if value not in allowed:
            raise ValueError(
                f"Unknown {section} type: {value}. Available: {', '.join(allowed)}"
            )
        return value

    def _resolve_params(self, params: Any, base_dir: Path | None) -> dict[str, Any]:
        if not isinstance(params, Mapping):
            raise ValueError("Intake config 'params' must be an object")
        resolved = dict(params)
        for name in self._PATH_PARAMS & resolved.keys():
            resolved[name] = self._resolve_path(resolved[name], base_dir)
        return resolved

    @staticmethod
    def _resolve_path(value: Any, base_dir: Path | None) -> Path:
        path = Path(str(value)).expanduser()
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        return path
