"""Go source parsing and module layout helpers."""

from __future__ import annotations

from .modules import locate_go_module, read_package_name
from .parser import (
    GoField,
    GoFile,
    GoImport,
    GoSourceParser,
    GoStruct,
    GoSyntaxError,
    parse_go_file,
    read_package_clause,
)
from .tags import lookup_tag, unquote_go_string

__all__ = [
    "GoField",
    "GoFile",
    "GoImport",
    "GoSourceParser",
    "GoStruct",
    "GoSyntaxError",
    "locate_go_module",
    "lookup_tag",
    "parse_go_file",
    "read_package_clause",
    "read_package_name",
    "unquote_go_string",
]
