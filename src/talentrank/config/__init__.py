"""YAML-backed configuration files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class ConfigManager:
    """Read and write named YAML documents under a base directory."""

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base_path

    def path_for(self, name: str) -> Path:
        return self._base_path / f"{name}.yaml"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def load(self, name: str) -> dict[str, Any] | None:
        """Load a YAML document by name without file extension.

        Returns ``None`` when the document does not exist or is empty.
        """
        path = self.path_for(name)
        if not path.is_file():
            return None
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
        if loaded is None:
            return None
        if not isinstance(loaded, dict):
            raise ValueError(f"{path}: expected a YAML mapping, got {type(loaded).__name__}")
        return loaded

    def save(self, name: str, payload: dict[str, Any]) -> Path:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(payload, handle, sort_keys=True, allow_unicode=True)
        return path


__all__ = ["ConfigManager"]
