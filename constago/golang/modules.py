"""Go module layout helpers: go.mod discovery and package clause lookups."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Tuple

from .parser import read_package_clause

_MODULE_DIRECTIVE = re.compile(r"^module\s+(?P<path>\"[^\"]*\"|`[^`]*`|\S+)")
_VERSION_SUFFIX = re.compile(r"^v\d+$")


def locate_go_module(file_path: str | Path) -> Tuple[Optional[Path], str]:
    """Walk up from a file to the nearest go.mod and return (module dir, module path)."""
    directory = Path(file_path).resolve().parent
    for candidate in (directory, *directory.parents):
        go_mod = candidate / "go.mod"
        if not go_mod.is_file():
            continue
        try:
            text = go_mod.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return candidate, ""
        return candidate, parse_module_path(text)
    return None, ""


def parse_module_path(go_mod: str) -> str:
    for raw in go_mod.splitlines():
        line = raw.split("//", 1)[0].strip()
        match = _MODULE_DIRECTIVE.match(line)
        if match:
            return match.group("path").strip("\"`")
    return ""


def read_package_name(directory: str | Path) -> str:
    """Return the package clause of the first parseable Go file in a directory."""
    path = Path(directory)
    if not path.is_dir():
        return ""
    for entry in sorted(path.iterdir()):
        if entry.is_dir() or entry.suffix != ".go" or entry.name.endswith("_test.go"):
            continue
        name = read_package_clause(entry)
        if name:
            return name
    return ""


def is_version_suffix(segment: str) -> bool:
    """True for major-version path elements such as ``v2`` or ``v5``."""
    return bool(_VERSION_SUFFIX.match(segment))


def escape_module_path(path: str) -> str:
    """Apply the module cache case-encoding (``!x`` for every upper-case ``X``)."""
    return "".join(f"!{char.lower()}" if char.isupper() else char for char in path)


def import_path_has_segment(import_path: str, segment: str) -> bool:
    return bool(segment) and segment in import_path.split("/")


def last_path_segment(import_path: str) -> str:
    return import_path.rsplit("/", 1)[-1]


__all__ = [
    "escape_module_path",
    "import_path_has_segment",
    "is_version_suffix",
    "last_path_segment",
    "locate_go_module",
    "parse_module_path",
    "read_package_name",
]
