"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path

from fetchmap.config import AnalyzerConfig
from fetchmap.logging_config import configure_logging


def build_config(source_roots: str | None) -> AnalyzerConfig:
    """AnalyzerConfig with an optional comma-separated root override."""
    if not source_roots:
        return AnalyzerConfig()
    roots = tuple(
        r.strip().strip("/") for r in source_roots.split(",") if r.strip()
    )
    return AnalyzerConfig(source_roots=roots)


def resolve_project(project: Path) -> Path:
    return project.expanduser().resolve()


def enable_debug(debug: bool, log_file: Path | None = None) -> None:
    """Reconfigure logging when a command asks for more detail."""
    if debug or log_file is not None:
        configure_logging(debug=debug or None, log_file=log_file)
