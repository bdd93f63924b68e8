"""Renders the generation model into one Go file per package."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from .config import Config
from .logging import get_logger
from .model_builder import ModelBuilder
from .models import Model, PackageModel, ReturnOutput, ValueOutput
from .resolvers import PackageNameResolver

TEMPLATE_NAME = "code.go.j2"


@dataclass
class GenerationResult:
    """Outcome of a generation run."""

    model: Model
    written: List[Path] = field(default_factory=list)


def go_string(value: str) -> str:
    """Quote a value as a Go interpreted string literal."""
    return json.dumps(value, ensure_ascii=False)


def value_type(value: ValueOutput) -> str:
    """Spell a value's type with the identifier its import has in the generated file."""
    package = value.type_package
    if not value.qualifier or not package.path or package.identifier == value.qualifier:
        return value.type_name
    pattern = re.compile(rf"\b{re.escape(value.qualifier)}\.")
    return pattern.sub(f"{package.identifier}.", value.type_name)


def return_type(ret: ReturnOutput) -> str:
    if ret.value is not None:
        return value_type(ret.value)
    return "string"


def return_value(ret: ReturnOutput) -> str:
    if ret.value is not None:
        return f"_struct.{ret.value.field_name}"
    if ret.constant is not None:
        return go_string(ret.constant.value)
    if ret.none is not None:
        return go_string(ret.none.value)
    if ret.field is not None:
        return go_string(ret.field.value)
    return '""'


def create_environment(templates_dir: Path | None = None) -> Environment:
    directory = templates_dir or Path(__file__).with_name("templates")
    env = Environment(
        loader=FileSystemLoader(str(directory)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["go_string"] = go_string
    env.filters["return_type"] = return_type
    env.filters["return_value"] = return_value
    return env


class CodeGenerator:
    """Builds the model for a configuration and writes the generated files."""

    def __init__(
        self,
        config: Config,
        *,
        resolver: PackageNameResolver | None = None,
        builder: ModelBuilder | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.builder = builder or ModelBuilder(config, resolver=resolver)
        self.logger = get_logger("generator")
        self._env = create_environment(templates_dir)

    def run(self) -> GenerationResult:
        """Generate code for every package holding at least one struct.

        ``PatternError`` from file discovery propagates before anything is written.
        """
        model = self.builder.build()
        for error in model.errors:
            self.logger.warning("%s:%d: %s", error.file, error.line, error.message)

        result = GenerationResult(model=model)
        for package in model.packages.values():
            if not package.structs:
                continue
            target = Path(package.path) / self.config.output.file_name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(self.render_package(package), encoding="utf-8")
            self.logger.info("Wrote %s (%d structs)", target, len(package.structs))
            result.written.append(target)
        return result

    def render_package(self, package: PackageModel) -> str:
        imports = sorted(
            (entry for entry in package.imports.values() if entry.path),
            key=lambda entry: entry.path,
        )
        template = self._env.get_template(TEMPLATE_NAME)
        return template.render(package=package, imports=imports)


__all__ = [
    "CodeGenerator",
    "GenerationResult",
    "create_environment",
    "go_string",
    "return_type",
    "return_value",
    "value_type",
]
