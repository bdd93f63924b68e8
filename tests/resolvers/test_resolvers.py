"""Tests for the package name resolvers."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from constago.resolvers import (
    CachingResolver,
    ChainResolver,
    GoListResolver,
    ModuleCacheResolver,
    default_resolver,
)
from tests._fixtures.static_resolver import StaticResolver


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _completed(stdout: str) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["go"], returncode=0, stdout=stdout, stderr="")


def test_go_list_returns_declared_name(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: List[Dict[str, object]] = []

    def fake_run(args, **kwargs):
        calls.append({"args": args, **kwargs})
        return _completed("yaml\n")

    monkeypatch.setattr("constago.resolvers.golist.subprocess.run", fake_run)

    resolver = GoListResolver(timeout=5)
    assert resolver.resolve("gopkg.in/yaml.v3", tmp_path) == "yaml"
    assert calls[0]["args"] == ["go", "list", "-f", "{{.Name}}", "gopkg.in/yaml.v3"]
    assert calls[0]["cwd"] == str(tmp_path)
    assert calls[0]["timeout"] == 5
    assert calls[0]["check"] is True


@pytest.mark.parametrize("stdout", ["main\n", "\n", ""])
def test_go_list_ignores_main_and_empty_output(monkeypatch: pytest.MonkeyPatch, stdout: str) -> None:
    monkeypatch.setattr(
        "constago.resolvers.golist.subprocess.run", lambda args, **kwargs: _completed(stdout)
    )

    assert GoListResolver().resolve("example.com/cmd/tool", None) is None


@pytest.mark.parametrize(
    "error",
    [
        FileNotFoundError("go"),
        subprocess.CalledProcessError(1, ["go"], stderr="cannot find module"),
        subprocess.TimeoutExpired(["go"], 60),
    ],
)
def test_go_list_failures_yield_no_answer(monkeypatch: pytest.MonkeyPatch, error: Exception) -> None:
    def fake_run(args, **kwargs):
        raise error

    monkeypatch.setattr("constago.resolvers.golist.subprocess.run", fake_run)

    assert GoListResolver().resolve("github.com/acme/missing", None) is None


@pytest.fixture
def module_cache(tmp_path: Path) -> Path:
    root = tmp_path / "mod"
    _write(root / "github.com/google/uuid@v1.5.0/uuid.go", "package olduuid\n")
    _write(root / "github.com/google/uuid@v1.6.0/uuid.go", "package uuid\n")
    _write(root / "github.com/gofrs/uuid/v5@v5.4.0/uuid.go", "package uuid\n")
    _write(root / "example.com/old/lib@v2.0.0/lib.go", "package lib\n")
    _write(root / "github.com/!burnt!sushi/toml@v1.3.2/decode.go", "package toml\n")
    _write(root / "example.com/acme/kit@v1.0.0/log/log.go", "package klog\n")
    _write(root / "example.com/acme/kit@v1.0.0/log/log_test.go", "package klog_test\n")
    return root


@pytest.mark.parametrize(
    ("import_path", "expected"),
    [
        ("github.com/google/uuid", "uuid"),
        ("github.com/gofrs/uuid/v5", "uuid"),
        ("example.com/old/lib/v2", "lib"),
        ("github.com/BurntSushi/toml", "toml"),
        ("example.com/acme/kit/log", "klog"),
        ("example.com/acme/kit/missing", None),
        ("fmt", None),
    ],
)
def test_module_cache_layouts(module_cache: Path, import_path: str, expected: Optional[str]) -> None:
    resolver = ModuleCacheResolver([module_cache])

    assert resolver.resolve(import_path, None) == expected


def test_module_cache_skips_roots_that_do_not_exist(module_cache: Path, tmp_path: Path) -> None:
    resolver = ModuleCacheResolver([tmp_path / "absent", module_cache])

    assert resolver.resolve("github.com/google/uuid", None) == "uuid"


def test_module_cache_roots_follow_environment() -> None:
    environ = {
        "GOMODCACHE": "/cache/mod",
        "GOPATH": os.pathsep.join(["/work", "/cache/.."]),
    }
    resolver = ModuleCacheResolver(environ=environ)

    assert resolver.roots == [
        Path("/cache/mod"),
        Path("/work/pkg/mod"),
        Path("/cache/../pkg/mod"),
    ]


def test_module_cache_roots_deduplicate_gomodcache_and_gopath() -> None:
    resolver = ModuleCacheResolver(environ={"GOMODCACHE": "/work/pkg/mod", "GOPATH": "/work"})

    assert resolver.roots == [Path("/work/pkg/mod")]


def test_module_cache_defaults_to_home_go_path() -> None:
    resolver = ModuleCacheResolver(environ={})

    assert resolver.roots == [Path.home() / "go" / "pkg" / "mod"]


def test_chain_returns_first_answer() -> None:
    first = StaticResolver({"a/b": ""})
    second = StaticResolver({"a/b": "bee"})
    third = StaticResolver({"a/b": "never"})
    chain = ChainResolver([first, second, third])

    assert chain.resolve("a/b", None) == "bee"
    assert first.calls == ["a/b"]
    assert second.calls == ["a/b"]
    assert third.calls == []
    assert chain.resolve("c/d", None) is None


def test_chain_rejects_non_resolvers() -> None:
    with pytest.raises(TypeError):
        ChainResolver([StaticResolver(), object()])


def test_caching_resolver_memoises_hits_and_misses() -> None:
    inner = StaticResolver({"strings": "strings"})
    cache = CachingResolver(inner)

    assert cache.resolve("strings", None) == "strings"
    assert cache.resolve("strings", None) == "strings"
    assert cache.resolve("missing/pkg", None) is None
    assert cache.resolve("missing/pkg", None) is None
    assert inner.calls == ["strings", "missing/pkg"]

    cache.clear()
    cache.resolve("strings", None)
    assert inner.calls == ["strings", "missing/pkg", "strings"]


def test_default_resolver_tries_go_list_before_module_cache() -> None:
    resolver = default_resolver()

    assert isinstance(resolver, CachingResolver)
    assert isinstance(resolver.inner, ChainResolver)
    assert [type(item) for item in resolver.inner.resolvers] == [GoListResolver, ModuleCacheResolver]
