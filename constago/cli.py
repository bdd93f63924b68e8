"""CLI entrypoint for the constago generator."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .config import BINDABLE_KEYS, ConfigError, load_config
from .generator import CodeGenerator
from .logging import configure_logging
from .source_walker import PatternError

_HELP: Dict[str, str] = {
    "input.dir": "Directory the include and exclude patterns are relative to.",
    "input.include": "Glob or package:<name> pattern selecting files to scan (repeatable).",
    "input.exclude": "Glob or package:<name> pattern selecting files to skip (repeatable).",
    "input.struct.explicit": "Only process structs carrying a constago:include directive.",
    "input.struct.include_unexported": "Also process unexported structs.",
    "input.field.explicit": "Only process fields tagged constago:\"include\".",
    "input.field.include_unexported": "Also process unexported fields.",
    "output.file_name": "Name of the generated file written into each package directory.",
}


def _split_patterns(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="constago",
        description="Generate constants, accessor structs and getters from Go struct tags.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML config file (defaults to ./constago.yaml when present).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug-level logs to this file.",
    )
    # Override flags default to SUPPRESS so only flags the user passed reach the loader.
    for key, kind in BINDABLE_KEYS.items():
        flag = f"--{key}"
        if kind == "bool":
            parser.add_argument(
                flag,
                dest=key,
                action=argparse.BooleanOptionalAction,
                default=argparse.SUPPRESS,
                help=_HELP[key],
            )
        elif kind == "list":
            parser.add_argument(
                flag,
                dest=key,
                action="extend",
                type=_split_patterns,
                metavar="GLOB",
                default=argparse.SUPPRESS,
                help=_HELP[key],
            )
        else:
            parser.add_argument(flag, dest=key, default=argparse.SUPPRESS, help=_HELP[key])
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    values = vars(args)
    return {key: values[key] for key in BINDABLE_KEYS if key in values}


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint for constago."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(args.config, overrides=_overrides(args))
        result = CodeGenerator(config).run()
    except ConfigError as exc:
        parser.exit(1, f"constago: {exc}\n")
    except PatternError as exc:
        parser.exit(1, f"constago: {exc}\n")

    model = result.model
    print(
        f"Scanned {model.files_scanned} files: "
        f"{model.packages_found} packages, {model.structs_found} structs, "
        f"{len(result.written)} files written"
    )
    if model.errors:
        print(f"{len(model.errors)} scan errors reported; see warnings above")


if __name__ == "__main__":
    main(sys.argv[1:])
