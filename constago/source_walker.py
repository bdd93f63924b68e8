"""Locate Go source files from include/exclude patterns."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Set

from pathspec import GitIgnoreSpec

from .golang.parser import read_package_clause
from .logging import get_logger

PACKAGE_PATTERN_PREFIX = "package:"

_EXCLUDED_DIRS = {".git", ".hg", ".svn"}

logger = get_logger("source_walker")


class PatternError(ValueError):
    """Raised when an include or exclude pattern is not a valid glob."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


def is_package_pattern(pattern: str) -> bool:
    return pattern.startswith(PACKAGE_PATTERN_PREFIX)


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternations, including nested ones, into plain globs."""
    start = _find_brace(pattern)
    if start < 0:
        return [pattern]

    depth = 0
    options: List[str] = []
    option_start = start + 1
    index = start
    while index < len(pattern):
        char = pattern[index]
        if char == "\\":
            index += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                options.append(pattern[option_start:index])
                break
        elif char == "," and depth == 1:
            options.append(pattern[option_start:index])
            option_start = index + 1
        index += 1
    else:
        raise PatternError(pattern, "unbalanced '{'")

    head, tail = pattern[:start], pattern[index + 1 :]
    expanded: List[str] = []
    for option in options:
        for candidate in expand_braces(f"{head}{option}{tail}"):
            if candidate not in expanded:
                expanded.append(candidate)
    return expanded


def _find_brace(pattern: str) -> int:
    index = 0
    in_class = False
    while index < len(pattern):
        char = pattern[index]
        if char == "\\":
            index += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
        elif char == "{":
            return index
        index += 1
    return -1


def _check_balance(pattern: str) -> None:
    braces = 0
    in_class = False
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char == "\\":
            if index + 1 >= len(pattern):
                raise PatternError(pattern, "trailing escape")
            index += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
        elif char == "{":
            braces += 1
        elif char == "}":
            braces -= 1
            if braces < 0:
                raise PatternError(pattern, "unbalanced '}'")
        index += 1
    if in_class:
        raise PatternError(pattern, "unbalanced '['")
    if braces:
        raise PatternError(pattern, "unbalanced '{'")


def _anchor(glob: str) -> str:
    while glob.startswith("./"):
        glob = glob[2:]
    return "/" + glob.lstrip("/")


def compile_pattern(pattern: str) -> GitIgnoreSpec:
    """Compile one glob, anchored at the base directory, into a ``GitIgnoreSpec``.

    Raises ``PatternError`` for malformed syntax.
    """
    _check_balance(pattern)
    lines = [_anchor(alternative) for alternative in expand_braces(pattern)]
    try:
        return GitIgnoreSpec.from_lines(lines)
    except ValueError as exc:
        raise PatternError(pattern, str(exc)) from exc


def _walk_go_files(base_dir: Path) -> List[str]:
    found: List[str] = []
    for current, dirnames, filenames in os.walk(base_dir):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        rel_dir = Path(current).relative_to(base_dir)
        for filename in filenames:
            if filename.endswith(".go"):
                found.append((rel_dir / filename).as_posix())
    found.sort()
    return found


class _PatternMatcher:
    """Matches relative paths against one pattern, compiled up front."""

    def __init__(self, pattern: str, package_names: Dict[str, str | None]) -> None:
        self.pattern = pattern
        self._package_names = package_names
        self._package = pattern[len(PACKAGE_PATTERN_PREFIX) :] if is_package_pattern(pattern) else None
        self._spec = None if self._package is not None else compile_pattern(pattern)

    def select(self, base_dir: Path, candidates: Iterable[str]) -> Set[str]:
        if self._spec is not None:
            return set(self._spec.match_files(candidates))
        selected: Set[str] = set()
        for rel_path in candidates:
            if rel_path not in self._package_names:
                self._package_names[rel_path] = read_package_clause(base_dir / rel_path)
            if self._package_names[rel_path] == self._package:
                selected.add(rel_path)
        return selected


def find_files(include: Sequence[str], exclude: Sequence[str], base_dir: str | Path) -> List[Path]:
    """Return the sorted Go files selected by ``include`` minus ``exclude``."""
    base = Path(base_dir)
    package_names: Dict[str, str | None] = {}
    include_matchers = [_PatternMatcher(pattern, package_names) for pattern in include]
    exclude_matchers = [_PatternMatcher(pattern, package_names) for pattern in exclude]

    candidates = _walk_go_files(base) if base.is_dir() else []

    excluded: Set[str] = set()
    for matcher in exclude_matchers:
        excluded |= matcher.select(base, candidates)

    remaining = [path for path in candidates if path not in excluded]
    selected: Set[str] = set()
    for matcher in include_matchers:
        selected |= matcher.select(base, remaining)

    logger.debug(
        "Matched %d of %d Go files under %s (%d excluded)",
        len(selected),
        len(candidates),
        base,
        len(excluded),
    )
    return [base / rel_path for rel_path in sorted(selected)]


__all__ = [
    "PACKAGE_PATTERN_PREFIX",
    "PatternError",
    "compile_pattern",
    "expand_braces",
    "find_files",
    "is_package_pattern",
]
