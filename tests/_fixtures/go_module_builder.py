"""Helper utilities for constructing temporary Go modules in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Dict, Mapping

from constago.config import Config, build_config


class GoModuleBuilder:
    """Utility for writing Go sources into a throwaway module."""

    def __init__(self, tmp_path: Path, module_path: str = "example.com/app") -> None:
        self.root = tmp_path / "module"
        self.root.mkdir()
        self.module_path = module_path
        (self.root / "go.mod").write_text(f"module {module_path}\n\ngo 1.22\n", encoding="utf-8")

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the module."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def config(self, data: Mapping[str, Any] | None = None) -> Config:
        """Build a validated config whose input directory is the module root."""
        raw: Dict[str, Any] = dict(data or {})
        raw["input"] = {"dir": str(self.root), **dict(raw.get("input") or {})}
        return build_config(raw)

    def path(self, relative: str = "") -> Path:
        """Return the module root, or a path inside it."""
        return self.root / relative if relative else self.root


__all__ = ["GoModuleBuilder"]
