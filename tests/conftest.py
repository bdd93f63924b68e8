from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.go_module_builder import GoModuleBuilder
from tests._fixtures.static_resolver import StaticResolver


@pytest.fixture
def go_module(tmp_path: Path) -> GoModuleBuilder:
    """Provide a reusable Go module builder rooted at the pytest tmp_path."""
    return GoModuleBuilder(tmp_path)


@pytest.fixture
def static_resolver() -> StaticResolver:
    """Resolver that knows a handful of standard library packages."""
    return StaticResolver({"strings": "strings", "encoding/binary": "binary", "time": "time"})
