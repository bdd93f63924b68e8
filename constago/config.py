"""Configuration loading for constago (constago.yaml, CONSTAGO_* variables, flags)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .source_walker import PACKAGE_PATTERN_PREFIX, PatternError, compile_pattern

INPUT_MODE_TAG_THEN_FIELD = "tagThenField"
INPUT_MODE_FIELD = "field"
INPUT_MODE_TAG = "tag"
INPUT_MODES = (INPUT_MODE_TAG_THEN_FIELD, INPUT_MODE_FIELD, INPUT_MODE_TAG)

OUTPUT_MODE_NONE = "none"
OUTPUT_MODE_STRUCT = "struct"
OUTPUT_MODE_CONSTANT = "constant"
OUTPUT_MODES = (OUTPUT_MODE_NONE, OUTPUT_MODE_STRUCT, OUTPUT_MODE_CONSTANT)

FORMAT_CAMEL = "camel"
FORMAT_PASCAL = "pascal"
FORMAT_SNAKE = "snake"
FORMAT_SNAKE_UPPER = "snakeUpper"
FORMATS = (FORMAT_CAMEL, FORMAT_PASCAL, FORMAT_SNAKE, FORMAT_SNAKE_UPPER)

TRANSFORM_AS_IS = "asIs"
TRANSFORM_CAMEL = "camel"
TRANSFORM_PASCAL = "pascal"
TRANSFORM_UPPER = "upper"
TRANSFORM_LOWER = "lower"
TRANSFORMS = (TRANSFORM_AS_IS, TRANSFORM_CAMEL, TRANSFORM_PASCAL, TRANSFORM_UPPER, TRANSFORM_LOWER)

TAG_FIELD_NAME = ":field"
VALUE_RETURN = ":value"
DIRECTIVE_TAG = "constago"

DEFAULT_CONFIG_FILES = ("constago.yaml", "constago.yml")
DEFAULT_INCLUDE = ("**/*.go",)
DEFAULT_EXCLUDE = ("**/*_test.go",)
DEFAULT_FILE_NAME = "constago_gen.go"
DEFAULT_TAG_PRIORITY = ("field", "json", "xml", "yaml", "toml", "sql")

ENV_PREFIX = "CONSTAGO_"

_GO_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_GO_FILE_NAME = re.compile(r"^[^/\\]*\.go$")

# Scalar settings that may come from CONSTAGO_* variables and command-line flags.
BINDABLE_KEYS: Dict[str, str] = {
    "input.dir": "str",
    "input.include": "list",
    "input.exclude": "list",
    "input.struct.explicit": "bool",
    "input.struct.include_unexported": "bool",
    "input.field.explicit": "bool",
    "input.field.include_unexported": "bool",
    "output.file_name": "str",
}


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be read or does not validate."""

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None) -> None:
        self.errors: Dict[str, List[str]] = dict(errors or {})
        if self.errors:
            details = "; ".join(
                f"{key}: {msg}" for key, messages in self.errors.items() for msg in messages
            )
            message = f"{message}: {details}"
        super().__init__(message)


@dataclass(frozen=True)
class SelectionConfig:
    """Inclusion switches shared by the struct and field policies."""

    explicit: bool = False
    include_unexported: bool = False


@dataclass(frozen=True)
class InputConfig:
    dir: str = "."
    include: Tuple[str, ...] = DEFAULT_INCLUDE
    exclude: Tuple[str, ...] = DEFAULT_EXCLUDE
    struct: SelectionConfig = field(default_factory=SelectionConfig)
    field: SelectionConfig = field(default_factory=SelectionConfig)


@dataclass(frozen=True)
class OutputConfig:
    file_name: str = DEFAULT_FILE_NAME


@dataclass(frozen=True)
class ElementInputConfig:
    mode: str = INPUT_MODE_TAG_THEN_FIELD
    tag_priority: Tuple[str, ...] = DEFAULT_TAG_PRIORITY


@dataclass(frozen=True)
class FormatConfig:
    holder: str = FORMAT_PASCAL
    struct: str = FORMAT_PASCAL
    prefix: str = ""
    suffix: str = ""


@dataclass(frozen=True)
class TransformConfig:
    tag_values: bool = False
    value_case: str = TRANSFORM_AS_IS
    value_separator: str = ""


@dataclass(frozen=True)
class ElementOutputConfig:
    mode: str = OUTPUT_MODE_CONSTANT
    format: FormatConfig = field(default_factory=FormatConfig)
    transform: TransformConfig = field(default_factory=TransformConfig)


@dataclass(frozen=True)
class ElementConfig:
    """A named value derived from each field (``elements[i]``)."""

    name: str
    input: ElementInputConfig = field(default_factory=ElementInputConfig)
    output: ElementOutputConfig = field(default_factory=ElementOutputConfig)


@dataclass(frozen=True)
class GetterOutputConfig:
    prefix: str = ""
    suffix: str = ""
    format: str = FORMAT_PASCAL


@dataclass(frozen=True)
class GetterConfig:
    """A method generated per field returning the listed elements (``getters[i]``)."""

    name: str
    returns: Tuple[str, ...] = ()
    output: GetterOutputConfig = field(default_factory=GetterOutputConfig)


@dataclass(frozen=True)
class Config:
    """Represents the settings defined in constago.yaml after defaults."""

    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    elements: Tuple[ElementConfig, ...] = ()
    getters: Tuple[GetterConfig, ...] = ()

    def element(self, name: str) -> Optional[ElementConfig]:
        for element in self.elements:
            if element.name == name:
                return element
        return None


def is_go_identifier(value: str) -> bool:
    return bool(_GO_IDENTIFIER.match(value))


def is_valid_source(pattern: str) -> bool:
    """True for ``package:<ident>`` or a syntactically valid ``*.go`` glob."""
    if pattern.startswith(PACKAGE_PATTERN_PREFIX):
        return is_go_identifier(pattern[len(PACKAGE_PATTERN_PREFIX) :])
    if not pattern.endswith(".go"):
        return False
    try:
        compile_pattern(pattern)
    except PatternError:
        return False
    return True


def load_config(
    path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from disk, the environment and explicit overrides.

    An explicit ``path`` must exist. Without one, ``constago.yaml`` or
    ``constago.yml`` in the working directory is used when present.
    Environment values beat the file and ``overrides`` beat both.
    """
    data: Dict[str, Any] = {}
    config_file = _resolve_config_path(path)
    if config_file is not None:
        data = _read_config(config_file)

    env = os.environ if environ is None else environ
    for key, kind in BINDABLE_KEYS.items():
        env_name = ENV_PREFIX + key.replace(".", "_").upper()
        raw = env.get(env_name)
        if raw is None or not raw.strip():
            continue
        _set_dotted(data, key, _coerce_env(raw, kind, env_name))

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        _set_dotted(data, key, value)

    return build_config(data)


def build_config(data: Mapping[str, Any]) -> Config:
    """Apply defaults to a raw mapping and validate the result."""
    if not isinstance(data, Mapping):
        raise ConfigError("configuration must contain a mapping at the root")

    errors: Dict[str, List[str]] = {}

    input_data = _as_dict(data.get("input"))
    struct_data = _as_dict(input_data.get("struct"))
    field_data = _as_dict(input_data.get("field"))
    input_config = InputConfig(
        dir=_as_str(input_data.get("dir")) or ".",
        include=tuple(_as_str_list(input_data.get("include"))) or DEFAULT_INCLUDE,
        exclude=tuple(_as_str_list(input_data.get("exclude"))) or DEFAULT_EXCLUDE,
        struct=SelectionConfig(
            explicit=_bool_setting(struct_data, "explicit", "input.struct", errors),
            include_unexported=_bool_setting(struct_data, "include_unexported", "input.struct", errors),
        ),
        field=SelectionConfig(
            explicit=_bool_setting(field_data, "explicit", "input.field", errors),
            include_unexported=_bool_setting(field_data, "include_unexported", "input.field", errors),
        ),
    )

    output_data = _as_dict(data.get("output"))
    output_config = OutputConfig(file_name=_as_str(output_data.get("file_name")) or DEFAULT_FILE_NAME)

    elements = tuple(
        _build_element(_as_dict(item), f"elements[{index}]", errors)
        for index, item in enumerate(_as_list(data.get("elements"), "elements", errors))
    )
    getters = tuple(
        _build_getter(_as_dict(item))
        for item in _as_list(data.get("getters"), "getters", errors)
    )

    config = Config(input=input_config, output=output_config, elements=elements, getters=getters)
    _validate(config, errors)
    if errors:
        raise ConfigError("config validation failed", errors)
    return config


def _build_element(data: Dict[str, Any], path: str, errors: Dict[str, List[str]]) -> ElementConfig:
    name = _as_str(data.get("name")) or ""
    input_data = _as_dict(data.get("input"))
    output_data = _as_dict(data.get("output"))
    format_data = _as_dict(output_data.get("format"))
    transform_data = _as_dict(output_data.get("transform"))

    tag_priority = input_data.get("tag_priority")
    return ElementConfig(
        name=name,
        input=ElementInputConfig(
            mode=_as_str(input_data.get("mode")) or INPUT_MODE_TAG_THEN_FIELD,
            tag_priority=(
                tuple(_as_str_list(tag_priority)) if tag_priority is not None else DEFAULT_TAG_PRIORITY
            ),
        ),
        output=ElementOutputConfig(
            mode=_as_str(output_data.get("mode")) or OUTPUT_MODE_CONSTANT,
            format=FormatConfig(
                holder=_as_str(format_data.get("holder")) or FORMAT_PASCAL,
                struct=_as_str(format_data.get("struct")) or FORMAT_PASCAL,
                prefix=(_as_str(format_data.get("prefix")) or "").strip() or name,
                suffix=(_as_str(format_data.get("suffix")) or "").strip(),
            ),
            transform=TransformConfig(
                tag_values=_bool_setting(transform_data, "tag_values", f"{path}.output.transform", errors),
                value_case=_as_str(transform_data.get("value_case")) or TRANSFORM_AS_IS,
                value_separator=_as_str(transform_data.get("value_separator")) or "",
            ),
        ),
    )


def _build_getter(data: Dict[str, Any]) -> GetterConfig:
    name = _as_str(data.get("name")) or ""
    output_data = _as_dict(data.get("output"))
    return GetterConfig(
        name=name,
        returns=tuple(_as_str_list(data.get("returns"))),
        output=GetterOutputConfig(
            prefix=(_as_str(output_data.get("prefix")) or "").strip() or name,
            suffix=(_as_str(output_data.get("suffix")) or "").strip(),
            format=_as_str(output_data.get("format")) or FORMAT_PASCAL,
        ),
    )


def _validate(config: Config, errors: Dict[str, List[str]]) -> None:
    def add(key: str, message: str) -> None:
        errors.setdefault(key, []).append(message)

    def check_identifier(key: str, value: str, *, optional: bool = False) -> None:
        if optional and not value:
            return
        if not value.strip():
            add(key, "must not be blank")
        elif not is_go_identifier(value):
            add(key, f'"{value}" is not a valid Go identifier')

    def check_choice(key: str, value: str, choices: Sequence[str]) -> None:
        if value not in choices:
            add(key, f'"{value}" is not a valid {key.rsplit(".", 1)[-1]}, must be {", ".join(choices)}')

    for group in ("include", "exclude"):
        for index, pattern in enumerate(getattr(config.input, group)):
            key = f"input.{group}[{index}]"
            if not pattern.strip():
                add(key, "Source pattern must not be blank")
            elif not is_valid_source(pattern):
                add(key, "Source pattern must be a valid source pattern")

    if not _GO_FILE_NAME.match(config.output.file_name.strip()):
        add("output.file_name", "File name must be a valid Go filename")

    element_names: List[str] = []
    for index, element in enumerate(config.elements):
        base = f"elements[{index}]"
        element_names.append(element.name)
        check_identifier(f"{base}.name", element.name)
        check_choice(f"{base}.input.mode", element.input.mode, INPUT_MODES)
        if not element.input.tag_priority:
            add(f"{base}.input.tag_priority", "Tag priority must have at least one element")
        for position, tag in enumerate(element.input.tag_priority):
            if tag != TAG_FIELD_NAME:
                check_identifier(f"{base}.input.tag_priority[{position}]", tag)
        check_choice(f"{base}.output.mode", element.output.mode, OUTPUT_MODES)
        check_choice(f"{base}.output.format.holder", element.output.format.holder, FORMATS)
        check_choice(f"{base}.output.format.struct", element.output.format.struct, FORMATS)
        check_identifier(f"{base}.output.format.prefix", element.output.format.prefix, optional=True)
        check_identifier(f"{base}.output.format.suffix", element.output.format.suffix, optional=True)
        check_choice(f"{base}.output.transform.value_case", element.output.transform.value_case, TRANSFORMS)

    seen: Dict[str, int] = {}
    for index, name in enumerate(element_names):
        if name and name in seen:
            add(f"elements[{index}].name", f'"{name}" is already defined by elements[{seen[name]}]')
        seen.setdefault(name, index)

    elements_valid = not any(key.startswith("elements") for key in errors)
    allowed_returns = set(element_names) | {VALUE_RETURN}
    for index, getter in enumerate(config.getters):
        base = f"getters[{index}]"
        check_identifier(f"{base}.name", getter.name)
        if not getter.returns:
            add(f"{base}.returns", "Returns must have at least one element")
        if elements_valid:
            for position, token in enumerate(getter.returns):
                key = f"{base}.returns[{position}]"
                if not token.startswith(":") and not is_go_identifier(token):
                    add(key, f'"{token}" is not a valid Go identifier')
                elif token not in allowed_returns:
                    add(key, f'"{token}" is not a defined element or {VALUE_RETURN}')
        check_identifier(f"{base}.output.prefix", getter.output.prefix, optional=True)
        check_identifier(f"{base}.output.suffix", getter.output.suffix, optional=True)
        check_choice(f"{base}.output.format", getter.output.format, FORMATS)


def _resolve_config_path(path: str | Path | None) -> Optional[Path]:
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.is_file():
            raise ConfigError(f"config file not found: {config_path}")
        return config_path
    for name in DEFAULT_CONFIG_FILES:
        candidate = Path.cwd() / name
        if candidate.is_file():
            return candidate
    return None


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _set_dotted(data: Dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        nested = target.get(part)
        if not isinstance(nested, dict):
            nested = {}
            target[part] = nested
        target = nested
    target[parts[-1]] = value


def _coerce_env(raw: str, kind: str, name: str) -> Any:
    if kind == "list":
        return [item.strip() for item in raw.split(",") if item.strip()]
    if kind == "bool":
        value = _as_bool(raw)
        if value is None:
            raise ConfigError(f"{name} must be a boolean, got {raw!r}")
        return value
    return raw.strip()


def _bool_setting(data: Dict[str, Any], key: str, path: str, errors: Dict[str, List[str]]) -> bool:
    raw = data.get(key)
    if raw is None:
        return False
    value = _as_bool(raw)
    if value is None:
        errors.setdefault(f"{path}.{key}", []).append(f"{raw!r} is not a boolean")
        return False
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any, key: str, errors: Dict[str, List[str]]) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    errors.setdefault(key, []).append("must be a list")
    return []


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "BINDABLE_KEYS",
    "Config",
    "ConfigError",
    "ElementConfig",
    "ElementInputConfig",
    "ElementOutputConfig",
    "FormatConfig",
    "GetterConfig",
    "GetterOutputConfig",
    "InputConfig",
    "OutputConfig",
    "SelectionConfig",
    "TransformConfig",
    "build_config",
    "is_go_identifier",
    "is_valid_source",
    "load_config",
]
