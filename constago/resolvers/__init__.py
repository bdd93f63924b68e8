"""Package name resolution strategies for third-party imports."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .base import PackageNameResolver
from .golist import GoListResolver
from .modcache import ModuleCacheResolver


class ChainResolver(PackageNameResolver):
    """Tries each strategy in order and returns the first answer."""

    def __init__(self, resolvers: Iterable[PackageNameResolver]) -> None:
        self.resolvers: List[PackageNameResolver] = list(resolvers)
        for resolver in self.resolvers:
            if not isinstance(resolver, PackageNameResolver):
                raise TypeError(f"{resolver!r} is not a PackageNameResolver")

    def resolve(self, import_path: str, module_dir: Optional[Path]) -> Optional[str]:
        for resolver in self.resolvers:
            name = resolver.resolve(import_path, module_dir)
            if name:
                return name
        return None


class CachingResolver(PackageNameResolver):
    """Memoises another resolver by import path, misses included."""

    def __init__(self, inner: PackageNameResolver) -> None:
        self.inner = inner
        self._entries: Dict[str, Optional[str]] = {}

    def resolve(self, import_path: str, module_dir: Optional[Path]) -> Optional[str]:
        if import_path not in self._entries:
            self._entries[import_path] = self.inner.resolve(import_path, module_dir)
        return self._entries[import_path]

    def clear(self) -> None:
        self._entries.clear()


def default_resolver() -> PackageNameResolver:
    """Return the standard chain: ``go list`` first, then the module cache."""
    return CachingResolver(ChainResolver([GoListResolver(), ModuleCacheResolver()]))


__all__ = [
    "CachingResolver",
    "ChainResolver",
    "GoListResolver",
    "ModuleCacheResolver",
    "PackageNameResolver",
    "default_resolver",
]
