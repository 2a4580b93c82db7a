"""Connection configuration: which paths to list and how to classify them."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .parser import FilePath

logger = logging.getLogger(__name__)

_KEYS = ("paths", "configuration_file_paths", "plan_file_paths", "state_file_paths")


@dataclass
class ConnectionConfig:
    """Path lists per file classification.

    ``paths`` is the legacy spelling of ``configuration_file_paths``. When
    both are set, ``paths`` wins.
    """

    paths: list[str] | None = None
    configuration_file_paths: list[str] | None = None
    plan_file_paths: list[str] = field(default_factory=list)
    state_file_paths: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> ConnectionConfig:
        unknown = set(data) - set(_KEYS)
        if unknown:
            raise ValueError(f"unknown configuration keys: {', '.join(sorted(unknown))}")
        values: dict[str, Any] = {}
        for key in _KEYS:
            paths = data.get(key)
            if paths is None:
                continue
            if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
                raise ValueError(f"'{key}' must be a list of strings")
            values[key] = list(paths)
        return cls(**values)

    @classmethod
    def from_file(cls, path: str) -> ConnectionConfig:
        return cls.from_mapping(json.loads(Path(path).read_text(encoding="utf-8")))

    @property
    def is_empty(self) -> bool:
        return not (self.paths or self.configuration_file_paths
                    or self.plan_file_paths or self.state_file_paths)

    def effective_configuration_paths(self) -> list[str]:
        if self.paths is not None:
            if self.configuration_file_paths is not None:
                logger.warning(
                    "both 'paths' and 'configuration_file_paths' are set; "
                    "using the legacy 'paths'"
                )
            return list(self.paths)
        return list(self.configuration_file_paths or [])

    def file_paths(self) -> list[FilePath]:
        """Every configured path tagged with its classification, unexpanded."""
        items = [FilePath(path=p) for p in self.effective_configuration_paths()]
        items.extend(FilePath(path=p, is_plan=True) for p in self.plan_file_paths)
        items.extend(FilePath(path=p, is_state=True) for p in self.state_file_paths)
        return items
