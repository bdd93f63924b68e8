"""Resolve package names by reading sources from the local Go module cache."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from .base import PackageNameResolver
from ..golang.modules import escape_module_path, is_version_suffix, read_package_name
from ..logging import get_logger


class ModuleCacheResolver(PackageNameResolver):
    """Best-effort scan of cached third-party module sources."""

    def __init__(
        self,
        roots: Sequence[Path] | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._roots = list(roots) if roots is not None else None
        self._environ = environ if environ is not None else os.environ
        self.logger = get_logger("resolvers.modcache")

    @property
    def roots(self) -> List[Path]:
        if self._roots is not None:
            return self._roots
        roots: List[Path] = []
        gomodcache = self._environ.get("GOMODCACHE", "").strip()
        if gomodcache:
            roots.append(Path(gomodcache))
        gopath = self._environ.get("GOPATH", "").strip()
        for entry in gopath.split(os.pathsep) if gopath else []:
            if entry:
                roots.append(Path(entry) / "pkg" / "mod")
        if not gopath:
            roots.append(Path.home() / "go" / "pkg" / "mod")

        unique: List[Path] = []
        for root in roots:
            if root not in unique:
                unique.append(root)
        return unique

    def resolve(self, import_path: str, module_dir: Optional[Path]) -> Optional[str]:
        parts = [part for part in import_path.split("/") if part]
        if len(parts) < 2:
            return None
        for root in self.roots:
            if not root.is_dir():
                continue
            name = self._resolve_in(root, parts)
            if name:
                self.logger.debug("Resolved %s to package %s from %s", import_path, name, root)
                return name
        return None

    @staticmethod
    def _resolve_in(root: Path, parts: List[str]) -> Optional[str]:
        escaped = [escape_module_path(part) for part in parts]
        # Try the longest module path first: example.com/a/b@v1 before example.com/a@v1/b.
        for split in range(len(escaped), 0, -1):
            parent = root.joinpath(*escaped[: split - 1])
            if not parent.is_dir():
                continue
            subpath = escaped[split:]
            prefix = f"{escaped[split - 1]}@"
            candidates = sorted(
                (entry for entry in parent.iterdir() if entry.is_dir() and entry.name.startswith(prefix)),
                key=lambda entry: entry.name,
                reverse=True,
            )
            for module_root in candidates:
                name = read_package_name(module_root.joinpath(*subpath))
                if name:
                    return name
                if len(subpath) == 1 and is_version_suffix(parts[-1]):
                    name = read_package_name(module_root)
                    if name:
                        return name
        return read_package_name(root.joinpath(*escaped)) or None


__all__ = ["ModuleCacheResolver"]
