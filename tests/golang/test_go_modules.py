"""Tests for go.mod discovery and module layout helpers."""

from __future__ import annotations

import pytest

from constago.golang.modules import (
    escape_module_path,
    import_path_has_segment,
    is_version_suffix,
    last_path_segment,
    locate_go_module,
    parse_module_path,
    read_package_name,
)
from tests._fixtures.go_module_builder import GoModuleBuilder


def test_parse_module_path_variants() -> None:
    assert parse_module_path("module example.com/app\n\ngo 1.22\n") == "example.com/app"
    assert parse_module_path('// header\nmodule "example.com/quoted" // trailing\n') == "example.com/quoted"
    assert parse_module_path("go 1.22\n") == ""


def test_locate_go_module_walks_up_from_nested_file(go_module: GoModuleBuilder) -> None:
    go_module.write({"internal/store/store.go": "package store\n"})

    module_dir, module_path = locate_go_module(go_module.path("internal/store/store.go"))

    assert module_dir == go_module.path().resolve()
    assert module_path == "example.com/app"


def test_read_package_name_skips_tests_and_unparseable_files(go_module: GoModuleBuilder) -> None:
    go_module.write(
        {
            "pkg/a_test.go": "package pkg_test\n",
            "pkg/b.go": "// no clause here\n",
            "pkg/c.go": "package realname\n",
        }
    )

    assert read_package_name(go_module.path("pkg")) == "realname"
    assert read_package_name(go_module.path("missing")) == ""


@pytest.mark.parametrize(
    ("segment", "expected"),
    [("v2", True), ("v10", True), ("v2.1", False), ("version", False), ("v", False)],
)
def test_is_version_suffix(segment: str, expected: bool) -> None:
    assert is_version_suffix(segment) is expected


def test_path_helpers() -> None:
    assert escape_module_path("github.com/BurntSushi/toml") == "github.com/!burnt!sushi/toml"
    assert import_path_has_segment("github.com/google/uuid", "uuid")
    assert not import_path_has_segment("gopkg.in/yaml.v3", "yaml")
    assert not import_path_has_segment("gopkg.in/yaml.v3", "")
    assert last_path_segment("gopkg.in/yaml.v3") == "yaml.v3"
    assert last_path_segment("strings") == "strings"
