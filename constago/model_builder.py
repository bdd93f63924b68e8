"""Builds the generation model from Go sources according to the configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import (
    DIRECTIVE_TAG,
    OUTPUT_MODE_CONSTANT,
    OUTPUT_MODE_NONE,
    OUTPUT_MODE_STRUCT,
    VALUE_RETURN,
    Config,
    ElementConfig,
    GetterConfig,
)
from .golang.parser import GoField, GoFile, GoSourceParser, GoStruct, GoSyntaxError, comment_lines
from .golang.tags import lookup_tag
from .imports import ImportIndex, ImportIndexBuilder, create_value_output
from .logging import get_logger
from .models import (
    ConstantOutput,
    FieldOutput,
    GetterOutput,
    Model,
    NoneOutput,
    ReturnOutput,
    StructModel,
    StructOutput,
    ValueOutput,
)
from .naming import build_name, compute_element_value
from .resolvers import PackageNameResolver, default_resolver
from .source_walker import find_files

INCLUDE_DIRECTIVE = f"{DIRECTIVE_TAG}:include"
EXCLUDE_DIRECTIVE = f"{DIRECTIVE_TAG}:exclude"

_Artifacts = Dict[Tuple[str, str], ReturnOutput]


def is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def struct_directives(struct: GoStruct) -> Tuple[bool, bool]:
    """Return (include, exclude) for the directives in a struct's doc comments."""
    include = exclude = False
    for comment in struct.doc:
        for line in comment_lines(comment):
            tokens = line.split()
            if not tokens:
                continue
            if tokens[0] == INCLUDE_DIRECTIVE:
                include = True
            elif tokens[0] == EXCLUDE_DIRECTIVE:
                exclude = True
    return include, exclude


class ModelBuilder:
    """Walks the configured sources and assembles a ``Model``."""

    def __init__(
        self,
        config: Config,
        resolver: PackageNameResolver | None = None,
        parser: GoSourceParser | None = None,
    ) -> None:
        self.config = config
        self.parser = parser or GoSourceParser()
        self.index_builder = ImportIndexBuilder(resolver if resolver is not None else default_resolver())
        self.logger = get_logger("model_builder")
        self.model = Model()
        self._needs_value = any(VALUE_RETURN in getter.returns for getter in config.getters)

    def build(self) -> Model:
        """Scan every selected file. Raises ``PatternError`` before reading any source."""
        self.model = Model()
        files = self.find_files()
        self.logger.debug("Scanning %d Go files", len(files))
        for path in files:
            self.scan_file(path)
        return self.model

    def find_files(self) -> List[Path]:
        source = self.config.input
        files = find_files(source.include, source.exclude, Path(source.dir))
        # Previously generated output is never input.
        return [path for path in files if path.name != self.config.output.file_name]

    def scan_file(self, path: str | Path) -> None:
        """Scan one file into the current model, recording failures as scan errors."""
        self.model.files_scanned += 1
        file_name = str(path)
        try:
            go_file = self.parser.parse(path)
        except GoSyntaxError as exc:
            self.model.add_error(file_name, exc.line, f"failed to parse file: {exc}")
            self.logger.debug("Skipping %s: %s", file_name, exc)
            return
        except OSError as exc:
            self.model.add_error(file_name, 0, f"failed to parse file: {exc}")
            self.logger.debug("Skipping %s: %s", file_name, exc)
            return

        package_path = Path(path).resolve().parent.as_posix()
        index = self.index_builder.build(go_file)

        for struct in go_file.structs:
            if not self.must_include_struct(struct, file_name):
                continue
            struct_model, field_count = self._build_struct(go_file, struct, index)
            if struct_model.is_empty():
                self.logger.debug("Struct %s in %s produced no output", struct.name, file_name)
                continue
            self.model.add_struct(package_path, go_file.package_name, struct_model)
            self.model.fields_found += field_count

    def must_include_struct(self, struct: GoStruct, file_name: str) -> bool:
        include, exclude = struct_directives(struct)
        if include and exclude:
            self.model.add_error(file_name, struct.line, "struct has both include and exclude directives")
            return False
        policy = self.config.input.struct
        if exclude or (policy.explicit and not include):
            return False
        if not include and not policy.include_unexported and not is_exported(struct.name):
            return False
        return True

    def must_include_field(self, field: GoField) -> bool:
        directive = lookup_tag(field.tag, DIRECTIVE_TAG) if field.tag else None
        if directive == "exclude":
            return False
        if directive == "include":
            return True
        policy = self.config.input.field
        if policy.explicit and directive is None:
            return False
        if not policy.include_unexported and field.names and not is_exported(field.names[0]):
            return False
        return True

    def _build_struct(self, go_file: GoFile, struct: GoStruct, index: ImportIndex) -> Tuple[StructModel, int]:
        struct_model = StructModel(name=struct.name, file=go_file.path, line_number=struct.line)
        artifacts: _Artifacts = {}
        accessors: Dict[str, StructOutput] = {}
        field_count = 0

        for field in struct.fields:
            if not field.names or not self.must_include_field(field):
                continue
            for field_name in field.names:
                field_count += 1
                for element in self.config.elements:
                    self._add_element_artifact(
                        struct_model, element, field_name, field.tag, go_file.package_name, accessors, artifacts
                    )
                value = None
                if self._needs_value:
                    value = create_value_output(
                        field_name, field.type_node, go_file.source, index, go_file.package_name
                    )
                for getter in self.config.getters:
                    assembled = self._assemble_getter(getter, field_name, artifacts, value)
                    if assembled is not None:
                        struct_model.getters.append(assembled)
        return struct_model, field_count

    @staticmethod
    def _add_element_artifact(
        struct_model: StructModel,
        element: ElementConfig,
        field_name: str,
        tag: str,
        package_name: str,
        accessors: Dict[str, StructOutput],
        artifacts: _Artifacts,
    ) -> None:
        value = compute_element_value(field_name, tag, element)
        if not value:
            return
        fmt = element.output.format
        mode = element.output.mode
        key = (field_name, element.name)

        if mode == OUTPUT_MODE_CONSTANT:
            constant = ConstantOutput(
                name=build_name(fmt.prefix, struct_model.name, field_name, fmt.suffix, fmt.struct),
                value=value,
            )
            struct_model.constants.append(constant)
            artifacts[key] = ReturnOutput(constant=constant)
        elif mode == OUTPUT_MODE_STRUCT:
            accessor = accessors.get(element.name)
            if accessor is None:
                accessor = StructOutput(
                    name=build_name(fmt.prefix, struct_model.name, "", fmt.suffix, fmt.struct),
                    package=package_name,
                )
                accessors[element.name] = accessor
                struct_model.structs.append(accessor)
            accessor_field = FieldOutput(
                struct_name=accessor.name,
                name=build_name("", field_name, "", "", fmt.holder),
                value=value,
            )
            accessor.fields.append(accessor_field)
            artifacts[key] = ReturnOutput(field=accessor_field)
        elif mode == OUTPUT_MODE_NONE:
            # Nothing is emitted, so the value is known by its element's name.
            artifacts[key] = ReturnOutput(none=NoneOutput(name=element.name, value=value))

    @staticmethod
    def _assemble_getter(
        getter: GetterConfig,
        field_name: str,
        artifacts: _Artifacts,
        value: Optional[ValueOutput],
    ) -> Optional[GetterOutput]:
        output = getter.output
        assembled = GetterOutput(name=build_name(output.prefix, field_name, output.suffix, "", output.format))
        for token in getter.returns:
            if token.startswith(":"):
                if token != VALUE_RETURN:
                    continue
                if value is not None:
                    assembled.returns.append(ReturnOutput(value=value))
                continue
            artifact = artifacts.get((field_name, token))
            if artifact is not None:
                assembled.returns.append(artifact)

        if len(assembled.returns) != len(getter.returns):
            return None
        return assembled


__all__ = ["ModelBuilder", "is_exported", "struct_directives"]
