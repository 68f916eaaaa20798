"""Exception types raised by fetchmap."""

from __future__ import annotations

from pathlib import Path


class FetchmapError(Exception):
    """Base class for fetchmap errors."""


class ProjectConfigError(FetchmapError):
    """The project root or its tsconfig cannot be used for analysis.

    Raised before any analysis work starts; the CLI reports it and exits
    non-zero.
    """

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class SourceReadError(FetchmapError):
    """A source file could not be read from disk."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"failed to read {path}: {reason}")
        self.path = path
        self.reason = reason
