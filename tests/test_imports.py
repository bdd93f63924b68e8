"""Tests for the import index and declared-type rendering."""

from __future__ import annotations

from typing import Dict

import pytest

from constago.golang.parser import GoFile, parse_go_file
from constago.imports import ImportIndex, ImportIndexBuilder, TypeInfo, create_value_output, extract_type_info
from tests._fixtures.go_module_builder import GoModuleBuilder
from tests._fixtures.static_resolver import StaticResolver

USER_SOURCE = """
package models

import (
	"strings"
	b "encoding/binary"
	_ "embed"
	. "fmt"
	"example.com/app/internal/store"
	"gopkg.in/yaml.v3"
	"github.com/acme/unknown"
)

type User struct {
	Name    string
	Builder *strings.Builder
	Flag    b.Flag
	Items   []store.Item
	Lookup  map[string]*store.Item
	Node    yaml.Node
	Thing   unknown.Thing
	Other   missing.Value
	Recv    <-chan int
	Send    chan<- string
	Both    chan bool
	Arr     [4]byte
	Pairs   Pair[string, store.Item]
	Fn      func() error
	Any     interface{}
	Anon    struct{ X int }
}
"""


@pytest.fixture
def parsed(go_module: GoModuleBuilder) -> GoFile:
    go_module.write(
        {
            "internal/store/store.go": "package storage\n",
            "models/user.go": USER_SOURCE,
        }
    )
    return parse_go_file(go_module.path("models/user.go"))


@pytest.fixture
def index(parsed: GoFile, static_resolver: StaticResolver) -> ImportIndex:
    return ImportIndexBuilder(static_resolver).build(parsed)


def _types(parsed: GoFile, index: ImportIndex) -> Dict[str, TypeInfo]:
    fields = parsed.structs[0].fields
    return {field.names[0]: extract_type_info(field.type_node, parsed.source, index) for field in fields}


def test_index_stores_identifier_and_true_name(index: ImportIndex, static_resolver: StaticResolver) -> None:
    assert index.entries["b"].path == "encoding/binary"
    assert index.entries["binary"].name == "binary"
    assert index.entries["store"].name == "storage"
    assert index.entries["storage"].path == "example.com/app/internal/store"
    assert index.entries["yaml.v3"].name == "yaml.v3"
    assert "_" not in index and "." not in index
    # Packages inside the module are read from disk, never resolved externally.
    assert "example.com/app/internal/store" not in static_resolver.calls
    assert "gopkg.in/yaml.v3" in static_resolver.calls


def test_basic_and_composite_types(parsed: GoFile, index: ImportIndex) -> None:
    types = _types(parsed, index)

    assert types["Name"] == TypeInfo("string")
    assert types["Recv"].type_name == "<-chan int"
    assert types["Send"].type_name == "chan<- string"
    assert types["Both"].type_name == "chan bool"
    assert types["Arr"].type_name == "[4]byte"
    assert types["Fn"].type_name == "func"
    assert types["Any"].type_name == "interface{}"
    assert types["Anon"].type_name == "struct{}"


def test_qualified_types_resolve_their_package(parsed: GoFile, index: ImportIndex) -> None:
    types = _types(parsed, index)

    assert types["Builder"].type_name == "*strings.Builder"
    assert types["Builder"].package.path == "strings"
    assert types["Flag"].type_name == "b.Flag"
    assert types["Flag"].package.name == "binary"
    assert types["Flag"].qualifier == "b"
    assert types["Items"].type_name == "[]store.Item"
    assert types["Items"].package.name == "storage"
    assert types["Lookup"].type_name == "map[string]*store.Item"
    assert types["Lookup"].package.path == "example.com/app/internal/store"
    assert types["Pairs"].type_name == "Pair[string, store.Item]"
    assert types["Pairs"].package is None


def test_versioned_import_names_are_cleaned(parsed: GoFile, index: ImportIndex) -> None:
    node = _types(parsed, index)["Node"]

    assert node.type_name == "yaml.Node"
    assert node.package.path == "gopkg.in/yaml.v3"
    assert node.package.name == "yaml"


def test_unknown_qualifier_falls_back_to_unresolved_package(parsed: GoFile, index: ImportIndex) -> None:
    types = _types(parsed, index)

    assert types["Thing"].package.path == "github.com/acme/unknown"
    assert types["Other"].type_name == "missing.Value"
    assert types["Other"].package.path == ""
    assert types["Other"].package.name == "missing"


def test_create_value_output_assigns_current_package_to_unqualified_types(
    parsed: GoFile, index: ImportIndex
) -> None:
    fields = {field.names[0]: field for field in parsed.structs[0].fields}

    name = create_value_output("Name", fields["Name"].type_node, parsed.source, index, "models")
    assert name is not None
    assert name.type_name == "string"
    assert (name.type_package.path, name.type_package.name) == ("", "models")
    assert name.qualifier == ""

    flag = create_value_output("Flag", fields["Flag"].type_node, parsed.source, index, "models")
    assert flag is not None
    assert flag.qualifier == "b"

    other = create_value_output("Other", fields["Other"].type_node, parsed.source, index, "models")
    assert other is not None
    assert other.qualifier == ""

    assert create_value_output("Missing", None, parsed.source, index, "models") is None


def test_index_never_replaces_a_path_with_an_empty_one() -> None:
    index = ImportIndex()
    index.add("y", "gopkg.in/yaml.v3", "yaml")
    index.add("alias", "", "yaml")

    assert index.entries["yaml"].path == "gopkg.in/yaml.v3"
    found = index.lookup("yaml")
    assert found is not None and found.path == "gopkg.in/yaml.v3"
    assert found is not index.entries["yaml"]
