"""Core data models shared across constago components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class TypePackageOutput:
    """Package owning a field type, as it must be imported by generated code."""

    path: str
    name: str
    alias: str = ""

    @property
    def identifier(self) -> str:
        """Identifier the generated code uses to reference the package."""
        return self.alias or self.name


@dataclass
class ConstantOutput:
    name: str
    value: str


@dataclass
class FieldOutput:
    struct_name: str
    name: str
    value: str


@dataclass
class StructOutput:
    """Accessor record shared by every field producing a value for one element."""

    name: str
    package: str
    fields: List[FieldOutput] = field(default_factory=list)


@dataclass
class NoneOutput:
    """Transient element value only usable as getter return material."""

    name: str
    value: str


@dataclass
class ValueOutput:
    """Declared type of a struct field, for getters returning the live value."""

    field_name: str
    type_name: str
    type_package: TypePackageOutput
    qualifier: str = ""


@dataclass
class ReturnOutput:
    """Tagged union over the four kinds of getter return."""

    field: Optional[FieldOutput] = None
    constant: Optional[ConstantOutput] = None
    none: Optional[NoneOutput] = None
    value: Optional[ValueOutput] = None

    @property
    def kind(self) -> str:
        if self.value is not None:
            return "value"
        if self.constant is not None:
            return "constant"
        if self.none is not None:
            return "none"
        return "field"


@dataclass
class GetterOutput:
    name: str
    returns: List[ReturnOutput] = field(default_factory=list)


@dataclass
class StructModel:
    """Generated artifacts for one included struct declaration."""

    name: str
    file: str
    line_number: int
    constants: List[ConstantOutput] = field(default_factory=list)
    structs: List[StructOutput] = field(default_factory=list)
    getters: List[GetterOutput] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.constants or self.structs or self.getters)


@dataclass
class PackageModel:
    """Structs and imports collected for one source directory."""

    name: str
    path: str
    imports: Dict[str, TypePackageOutput] = field(default_factory=dict)
    structs: List[StructModel] = field(default_factory=list)


@dataclass
class ScanError:
    file: str
    line: int
    message: str


@dataclass
class Model:
    """Root aggregate produced by one generation run."""

    packages: Dict[str, PackageModel] = field(default_factory=dict)
    files_scanned: int = 0
    packages_found: int = 0
    structs_found: int = 0
    fields_found: int = 0
    errors: List[ScanError] = field(default_factory=list)

    def add_struct(self, package_path: str, package_name: str, struct_model: StructModel) -> None:
        """Attach a struct model to its package, registering the imports it needs."""
        package = self.packages.get(package_path)
        if package is None:
            package = PackageModel(name=package_name, path=package_path)
            self.packages[package_path] = package
            self.packages_found += 1

        for getter in struct_model.getters:
            for ret in getter.returns:
                if ret.value is None:
                    continue
                type_package = ret.value.type_package
                # Local and unresolved types need no import and keep their own package.
                if not type_package.path:
                    continue
                registered = package.imports.get(type_package.path)
                if registered is None:
                    package.imports[type_package.path] = type_package
                    _assign_alias(package.imports, type_package)
                    registered = type_package
                ret.value.type_package = registered

        package.structs.append(struct_model)
        self.structs_found += 1

    def add_error(self, file: str, line: int, message: str) -> None:
        """Append a non-fatal scanning error."""
        self.errors.append(ScanError(file=file, line=line, message=message))


def _assign_alias(imports: Dict[str, TypePackageOutput], current: TypePackageOutput) -> None:
    # Every candidate can collide with at most the name and the alias of each
    # other entry, which bounds the number of renames.
    candidate = current.name
    for _ in range(2 * len(imports) + 1):
        collision = any(
            other.path != current.path and candidate in (other.name, other.alias)
            for other in imports.values()
        )
        if not collision:
            break
        candidate = f"_{candidate}"
    else:
        raise RuntimeError(f"Unable to assign an import alias for {current.path}")
    current.alias = "" if candidate == current.name else candidate


__all__ = [
    "ConstantOutput",
    "FieldOutput",
    "GetterOutput",
    "Model",
    "NoneOutput",
    "PackageModel",
    "ReturnOutput",
    "ScanError",
    "StructModel",
    "StructOutput",
    "TypePackageOutput",
    "ValueOutput",
]
