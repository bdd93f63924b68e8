"""Tree-sitter powered declaration scanner for Go source files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from .tags import unquote_go_string

GO_LANGUAGE = Language(tree_sitter_go.language())


class GoSyntaxError(ValueError):
    """Raised when a Go source file does not parse cleanly."""

    def __init__(self, line: int, column: int, message: str) -> None:
        super().__init__(f"{line}:{column}: {message}")
        self.line = line
        self.column = column


@dataclass
class GoImport:
    name: Optional[str]
    path: str
    line: int


@dataclass
class GoField:
    """A field declaration; embedded fields have no names."""

    names: List[str]
    type_node: Optional[Node]
    tag: str
    line: int


@dataclass
class GoStruct:
    name: str
    line: int
    doc: List[str] = field(default_factory=list)
    fields: List[GoField] = field(default_factory=list)


@dataclass
class GoFile:
    """Declarations of one parsed Go file."""

    path: str
    package_name: str
    source: bytes
    imports: List[GoImport] = field(default_factory=list)
    structs: List[GoStruct] = field(default_factory=list)

    def text(self, node: Node) -> str:
        return node_text(node, self.source)


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def comment_lines(comment: str) -> List[str]:
    """Return the text lines of a ``//`` or ``/* */`` comment without markers."""
    if comment.startswith("//"):
        return [comment[2:].strip()]
    body = comment[2:-2] if comment.startswith("/*") and comment.endswith("*/") else comment
    lines = []
    for raw in body.splitlines():
        line = raw.strip()
        if line.startswith("*"):
            line = line[1:].strip()
        lines.append(line)
    return lines


class GoSourceParser:
    """Parses Go files into the declarations the model builder consumes."""

    def __init__(self) -> None:
        self._parser = Parser(GO_LANGUAGE)

    def parse(self, path: str | Path) -> GoFile:
        """Parse a file, raising ``GoSyntaxError`` if the syntax tree has errors."""
        source = Path(path).read_bytes()
        root = self._parser.parse(source).root_node
        if root.has_error:
            error = _first_error(root)
            line, column = (error.start_point[0] + 1, error.start_point[1] + 1) if error else (0, 0)
            kind = f"missing {error.type}" if error is not None and error.is_missing else "syntax error"
            raise GoSyntaxError(line, column, kind)

        package_name = _package_name(root, source)
        if package_name is None:
            raise GoSyntaxError(1, 1, "expected package clause")

        go_file = GoFile(path=str(path), package_name=package_name, source=source)
        for child in root.named_children:
            if child.type == "import_declaration":
                go_file.imports.extend(self._collect_imports(child, source))
            elif child.type == "type_declaration":
                go_file.structs.extend(self._collect_structs(child, source))
        return go_file

    def package_clause(self, path: str | Path) -> Optional[str]:
        """Return the declared package name, or None when it cannot be read."""
        try:
            source = Path(path).read_bytes()
        except OSError:
            return None
        root = self._parser.parse(source).root_node
        return _package_name(root, source)

    @staticmethod
    def _collect_imports(declaration: Node, source: bytes) -> Iterator[GoImport]:
        specs: List[Node] = []
        for child in declaration.named_children:
            if child.type == "import_spec":
                specs.append(child)
            elif child.type == "import_spec_list":
                specs.extend(spec for spec in child.named_children if spec.type == "import_spec")
        for spec in specs:
            path_node = spec.child_by_field_name("path")
            if path_node is None:
                continue
            try:
                import_path = unquote_go_string(node_text(path_node, source))
            except ValueError:
                continue
            name_node = spec.child_by_field_name("name")
            yield GoImport(
                name=node_text(name_node, source) if name_node is not None else None,
                path=import_path,
                line=spec.start_point[0] + 1,
            )

    def _collect_structs(self, declaration: Node, source: bytes) -> Iterator[GoStruct]:
        group_doc = _doc_comments(declaration, source)
        opening_row = next((child.start_point[0] for child in declaration.children if child.type == "("), None)
        for spec in declaration.named_children:
            if spec.type != "type_spec":
                continue
            type_node = spec.child_by_field_name("type")
            name_node = spec.child_by_field_name("name")
            if type_node is None or name_node is None or type_node.type != "struct_type":
                continue
            struct = GoStruct(
                name=node_text(name_node, source),
                line=spec.start_point[0] + 1,
                doc=group_doc + _doc_comments(spec, source, opening_row=opening_row),
            )
            struct.fields.extend(self._collect_fields(type_node, source))
            yield struct

    @staticmethod
    def _collect_fields(struct_type: Node, source: bytes) -> Iterator[GoField]:
        for field_list in struct_type.named_children:
            if field_list.type != "field_declaration_list":
                continue
            for declaration in field_list.named_children:
                if declaration.type != "field_declaration":
                    continue
                tag_node = declaration.child_by_field_name("tag")
                tag = ""
                if tag_node is not None:
                    try:
                        tag = unquote_go_string(node_text(tag_node, source))
                    except ValueError:
                        tag = ""
                yield GoField(
                    names=[node_text(name, source) for name in declaration.children_by_field_name("name")],
                    type_node=declaration.child_by_field_name("type"),
                    tag=tag,
                    line=declaration.start_point[0] + 1,
                )


def _package_name(root: Node, source: bytes) -> Optional[str]:
    for child in root.named_children:
        if child.type != "package_clause":
            continue
        if child.has_error:
            return None
        for part in child.named_children:
            if part.type == "package_identifier":
                return node_text(part, source)
        return None
    return None


def _first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _doc_comments(node: Node, source: bytes, *, opening_row: Optional[int] = None) -> List[str]:
    # The doc comment is the run of comments directly above the node, each on
    # its own line and with no blank line before the node.
    comments: List[str] = []
    current = node
    previous = node.prev_named_sibling
    while previous is not None and previous.type == "comment":
        # A comment after the group's "(" is a line comment, not a doc comment.
        if previous.start_point[0] == opening_row:
            break
        if previous.end_point[0] + 1 < current.start_point[0]:
            break
        before = previous.prev_named_sibling
        if before is not None and before.end_point[0] == previous.start_point[0]:
            break
        comments.append(node_text(previous, source))
        current = previous
        previous = before
    comments.reverse()
    return comments


_DEFAULT_PARSER: Optional[GoSourceParser] = None


def _default_parser() -> GoSourceParser:
    global _DEFAULT_PARSER
    if _DEFAULT_PARSER is None:
        _DEFAULT_PARSER = GoSourceParser()
    return _DEFAULT_PARSER


def parse_go_file(path: str | Path) -> GoFile:
    return _default_parser().parse(path)


def read_package_clause(path: str | Path) -> Optional[str]:
    return _default_parser().package_clause(path)


__all__ = [
    "GO_LANGUAGE",
    "GoField",
    "GoFile",
    "GoImport",
    "GoSourceParser",
    "GoStruct",
    "GoSyntaxError",
    "comment_lines",
    "node_text",
    "parse_go_file",
    "read_package_clause",
]
