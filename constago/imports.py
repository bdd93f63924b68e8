"""Per-file import index and declared-type rendering for value getters."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from tree_sitter import Node

from .golang.modules import import_path_has_segment, last_path_segment, locate_go_module, read_package_name
from .golang.parser import GoFile, node_text
from .logging import get_logger
from .models import TypePackageOutput, ValueOutput
from .resolvers import PackageNameResolver

logger = get_logger("imports")

_SKIPPED_IDENTIFIERS = {"_", "."}


@dataclass
class TypeInfo:
    """Rendered type expression plus the package owning its base type."""

    type_name: str
    package: Optional[TypePackageOutput] = None
    qualifier: str = ""


class ImportIndex:
    """Maps identifiers used in a file to the packages they import.

    Every import is stored under the identifier used in code and under the
    package's true name, so selectors resolve whichever of the two they use.
    """

    def __init__(
        self,
        *,
        resolver: Optional[PackageNameResolver] = None,
        module_dir: Optional[Path] = None,
        module_path: str = "",
    ) -> None:
        self.entries: Dict[str, TypePackageOutput] = {}
        self.resolver = resolver
        self.module_dir = module_dir
        self.module_path = module_path

    def __contains__(self, identifier: str) -> bool:
        return identifier in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def add(self, identifier: str, path: str, name: str) -> None:
        self.entries[identifier] = TypePackageOutput(path=path, name=name)
        if identifier != name:
            existing = self.entries.get(name)
            if existing is None or not existing.path:
                self.entries[name] = TypePackageOutput(path=path, name=name)

    def lookup(self, qualifier: str) -> Optional[TypePackageOutput]:
        """Find the package a selector qualifier refers to, or None if unknown."""
        entry = self.entries.get(qualifier)
        if entry is not None:
            return _copy(entry)

        by_name: Optional[TypePackageOutput] = None
        for candidate in self.entries.values():
            if candidate.name != qualifier:
                continue
            if candidate.path:
                by_name = candidate
                break
            if by_name is None:
                by_name = candidate
        if by_name is not None:
            return _copy(by_name)

        for candidate in self.entries.values():
            if candidate.path and import_path_has_segment(candidate.path, qualifier):
                return _copy(candidate)

        # Versioned last segments such as gopkg.in/yaml.v3 are indexed as
        # "yaml.v3" when nothing could resolve the real package name.
        for identifier, candidate in self.entries.items():
            if candidate.path and qualifier in identifier and qualifier in candidate.path:
                return TypePackageOutput(path=candidate.path, name=self._clean_name(candidate))
        return None

    def _clean_name(self, entry: TypePackageOutput) -> str:
        if "." not in entry.name:
            return entry.name
        if self.resolver is not None:
            resolved = self.resolver.resolve(entry.path, self.module_dir)
            if resolved:
                return resolved
        if entry.path.startswith("gopkg.in/"):
            return last_path_segment(entry.path).split(".", 1)[0]
        return entry.name


def _copy(entry: TypePackageOutput) -> TypePackageOutput:
    return TypePackageOutput(path=entry.path, name=entry.name)


class ImportIndexBuilder:
    """Builds the import index of a parsed file, resolving true package names."""

    def __init__(self, resolver: Optional[PackageNameResolver] = None) -> None:
        self.resolver = resolver

    def build(self, go_file: GoFile) -> ImportIndex:
        module_dir, module_path = locate_go_module(go_file.path)
        index = ImportIndex(resolver=self.resolver, module_dir=module_dir, module_path=module_path)
        for spec in go_file.imports:
            identifier = spec.name or last_path_segment(spec.path)
            if identifier in _SKIPPED_IDENTIFIERS:
                continue
            name = self._package_name(spec.path, module_dir, module_path) or identifier
            index.add(identifier, spec.path, name)
        return index

    def _package_name(self, import_path: str, module_dir: Optional[Path], module_path: str) -> str:
        if module_dir is not None and module_path and (
            import_path == module_path or import_path.startswith(f"{module_path}/")
        ):
            relative = import_path[len(module_path) :].lstrip("/")
            return read_package_name(module_dir.joinpath(*relative.split("/")) if relative else module_dir)
        if self.resolver is None:
            return ""
        name = self.resolver.resolve(import_path, module_dir)
        if not name:
            logger.debug("Could not resolve package name for %s", import_path)
        return name or ""


def extract_type_info(node: Optional[Node], source: bytes, index: ImportIndex) -> TypeInfo:
    """Render a type expression and find the package of its base type.

    Unsupported syntax yields an empty ``type_name``.
    """
    if node is None:
        return TypeInfo("")
    kind = node.type

    if kind == "type_identifier":
        return TypeInfo(node_text(node, source))

    if kind == "qualified_type":
        package_node = node.child_by_field_name("package")
        name_node = node.child_by_field_name("name")
        if package_node is None or name_node is None:
            return TypeInfo("")
        qualifier = node_text(package_node, source)
        selector = node_text(name_node, source)
        entry = index.lookup(qualifier)
        if entry is None:
            return TypeInfo(f"{qualifier}.{selector}", TypePackageOutput(path="", name=qualifier), qualifier)
        if not entry.path:
            return TypeInfo(selector, entry)
        return TypeInfo(f"{qualifier}.{selector}", entry, qualifier)

    if kind == "pointer_type":
        inner = extract_type_info(_first_named(node), source, index)
        return TypeInfo(f"*{inner.type_name}", inner.package, inner.qualifier) if inner.type_name else inner

    if kind == "slice_type":
        inner = extract_type_info(node.child_by_field_name("element"), source, index)
        return TypeInfo(f"[]{inner.type_name}", inner.package, inner.qualifier) if inner.type_name else inner

    if kind == "array_type":
        length = node.child_by_field_name("length")
        inner = extract_type_info(node.child_by_field_name("element"), source, index)
        if not inner.type_name or length is None:
            return TypeInfo("")
        return TypeInfo(f"[{node_text(length, source)}]{inner.type_name}", inner.package, inner.qualifier)

    if kind == "map_type":
        key = extract_type_info(node.child_by_field_name("key"), source, index)
        value = extract_type_info(node.child_by_field_name("value"), source, index)
        return TypeInfo(f"map[{key.type_name}]{value.type_name}", value.package, value.qualifier)

    if kind == "channel_type":
        inner = extract_type_info(node.child_by_field_name("value"), source, index)
        return TypeInfo(f"{_channel_prefix(node)}{inner.type_name}", inner.package, inner.qualifier)

    if kind == "generic_type":
        base = extract_type_info(node.child_by_field_name("type"), source, index)
        arguments = [
            extract_type_info(argument, source, index).type_name for argument in _type_arguments(node)
        ]
        return TypeInfo(f"{base.type_name}[{', '.join(arguments)}]", base.package, base.qualifier)

    if kind in ("parenthesized_type", "type_elem"):
        return extract_type_info(_first_named(node), source, index)

    if kind == "function_type":
        return TypeInfo("func")
    if kind == "interface_type":
        return TypeInfo("interface{}")
    if kind == "struct_type":
        return TypeInfo("struct{}")
    return TypeInfo("")


def _first_named(node: Node) -> Optional[Node]:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def _type_arguments(node: Node) -> List[Node]:
    arguments = node.child_by_field_name("type_arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def _channel_prefix(node: Node) -> str:
    tokens = [child.type for child in node.children if not child.is_named]
    if tokens and tokens[0] == "<-":
        return "<-chan "
    if "<-" in tokens:
        return "chan<- "
    return "chan "


def create_value_output(
    field_name: str,
    type_node: Optional[Node],
    source: bytes,
    index: ImportIndex,
    package_name: str,
) -> Optional[ValueOutput]:
    """Describe a field's declared type for a ``:value`` getter return."""
    info = extract_type_info(type_node, source, index)
    if not info.type_name:
        return None

    # Unqualified types belong to the package being scanned.
    package = info.package or TypePackageOutput(path="", name=package_name)

    return ValueOutput(
        field_name=field_name,
        type_name=info.type_name,
        type_package=package,
        qualifier=info.qualifier if package.path else "",
    )


__all__ = [
    "ImportIndex",
    "ImportIndexBuilder",
    "TypeInfo",
    "create_value_output",
    "extract_type_info",
]
