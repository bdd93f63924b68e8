"""Tests for include/exclude pattern expansion."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
from pathspec import GitIgnoreSpec

from constago.source_walker import PatternError, compile_pattern, expand_braces, find_files


def _write(root: Path, files: dict[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    _write(
        tmp_path,
        {
            "a.go": "package root\n",
            "a_test.go": "package root\n",
            "sub/b.go": "package sub\n",
            "sub/deep/c.go": "package deep\n",
            "sub/notes.txt": "not go\n",
            "vendor/v.go": "package vendored\n",
            "broken/x.go": "this is not go\n",
            ".git/hooks/hook.go": "package hooks\n",
        },
    )
    return tmp_path


def _relative(paths: list[Path], root: Path) -> list[str]:
    return [path.relative_to(root).as_posix() for path in paths]


def test_default_patterns_select_sources_without_tests(tree: Path) -> None:
    files = find_files(["**/*.go"], ["**/*_test.go"], tree)

    assert _relative(files, tree) == ["a.go", "broken/x.go", "sub/b.go", "sub/deep/c.go", "vendor/v.go"]


def test_single_star_is_anchored_at_base_dir(tree: Path) -> None:
    assert _relative(find_files(["*.go"], [], tree), tree) == ["a.go", "a_test.go"]
    assert _relative(find_files(["sub/*.go"], [], tree), tree) == ["sub/b.go"]


def test_brace_alternation(tree: Path) -> None:
    files = find_files(["{sub,vendor}/*.go"], [], tree)
    assert _relative(files, tree) == ["sub/b.go", "vendor/v.go"]


def test_package_patterns_match_declared_names(tree: Path) -> None:
    assert _relative(find_files(["package:vendored"], [], tree), tree) == ["vendor/v.go"]

    files = find_files(["**/*.go"], ["package:deep", "package:root", "broken/*.go"], tree)
    assert _relative(files, tree) == ["sub/b.go", "vendor/v.go"]


def test_vcs_directories_are_never_walked(tree: Path) -> None:
    assert find_files(["package:hooks"], [], tree) == []
    assert ".git/hooks/hook.go" not in _relative(find_files(["**/*.go"], [], tree), tree)


@pytest.mark.parametrize("pattern", ["[invalid", "{a,b", "a}.go", "trailing\\"])
def test_malformed_patterns_raise_before_walking(tmp_path: Path, pattern: str) -> None:
    with pytest.raises(PatternError):
        find_files([pattern], [], tmp_path / "does-not-exist")


def test_expand_braces_handles_nesting() -> None:
    assert expand_braces("a/{b,c{d,e}}.go") == ["a/b.go", "a/cd.go", "a/ce.go"]
    assert expand_braces("plain.go") == ["plain.go"]


def test_compile_pattern_matches_relative_paths() -> None:
    spec = compile_pattern("./models/*.go")
    assert spec.match_file("models/user.go")
    assert not spec.match_file("other/models/user.go")


def test_compile_pattern_uses_current_pathspec_api() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        spec = compile_pattern("**/*.{go,tmpl}")

    assert isinstance(spec, GitIgnoreSpec)
    assert spec.match_file("a/b/c.go")
    assert spec.match_file("top.tmpl")
