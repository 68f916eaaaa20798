"""Shared fixtures: small TypeScript projects built in tmp_path."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from textwrap import dedent

import pytest
from tree_sitter import Node

from fetchmap.analyzer import FrontendAnalyzer
from fetchmap.program import nodes
from fetchmap.program.source import Program, SourceFile
from fetchmap.schema_ir import SchemaIR


@pytest.fixture
def make_program(tmp_path: Path) -> Callable[[dict[str, str]], Program]:
    """Build an in-memory Program from {relative path: source}."""

    def _make(sources: dict[str, str]) -> Program:
        return Program.from_sources(
            tmp_path,
            {rel: dedent(src) for rel, src in sources.items()},
        )

    return _make


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write files below tmp_path and return the project root."""

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dedent(content), encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def analyze(make_program) -> Callable[..., list[SchemaIR]]:
    """Run the analyzer over in-memory sources."""

    def _analyze(sources: dict[str, str] | str) -> list[SchemaIR]:
        if isinstance(sources, str):
            sources = {"src/app.ts": sources}
        return FrontendAnalyzer(program=make_program(sources)).analyze()

    return _analyze


def find_call(file: SourceFile, callee: str) -> Node:
    """First call expression in a file whose callee text matches."""
    for call in file.iter_calls():
        if nodes.callee_text(call) == callee:
            return call
    raise AssertionError(f"no call to {callee} in {file.rel_path}")


def by_key(records: list[SchemaIR]) -> dict[str, SchemaIR]:
    return {r.key: r for r in records}
