"""Base classes for package name resolution strategies."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class PackageNameResolver(ABC):
    """Contract for strategies that discover the declared name of an imported package."""

    @abstractmethod
    def resolve(self, import_path: str, module_dir: Optional[Path]) -> Optional[str]:
        """Return the package's declared name, or None when this strategy cannot tell."""
