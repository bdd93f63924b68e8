"""Resolve package names through the ``go list`` command."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from .base import PackageNameResolver
from ..logging import get_logger


class GoListResolver(PackageNameResolver):
    """Asks the Go toolchain for the declared name of an import path."""

    def __init__(self, *, executable: str | None = None, timeout: Optional[float] = 60.0) -> None:
        self.executable = executable or "go"
        self.timeout = timeout
        self.logger = get_logger("resolvers.golist")

    def resolve(self, import_path: str, module_dir: Optional[Path]) -> Optional[str]:
        args = [self.executable, "list", "-f", "{{.Name}}", import_path]
        try:
            completed = subprocess.run(
                args,
                check=True,
                capture_output=True,
                text=True,
                cwd=str(module_dir) if module_dir is not None else None,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            self.logger.debug("'%s' executable not found; skipping go list", self.executable)
            return None
        except subprocess.CalledProcessError as exc:
            self.logger.debug(
                "go list failed for %s with exit code %s: %s",
                import_path,
                exc.returncode,
                (exc.stderr or "").strip(),
            )
            return None
        except subprocess.TimeoutExpired:
            self.logger.debug("go list timed out for %s after %ss", import_path, self.timeout)
            return None

        name = completed.stdout.strip()
        if not name or name == "main":
            return None
        return name


__all__ = ["GoListResolver"]
