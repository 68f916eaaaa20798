"""Analyzer configuration constants and defaults.

Environment variables:
    FETCHMAP_DEBUG: Enable debug logging when set to a truthy value.
    FETCHMAP_SOURCE_ROOTS: Comma-separated source roots to scan instead of
        the defaults (e.g. "src,app").
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

# Environment variable names
ENV_DEBUG = "FETCHMAP_DEBUG"
ENV_SOURCE_ROOTS = "FETCHMAP_SOURCE_ROOTS"

# Provenance tag stamped on every record
SCHEMA_SOURCE = "frontend-static"

# Roots scanned below the project directory (Next.js / React conventions)
DEFAULT_SOURCE_ROOTS = ("src", "app", "components", "lib", "hooks")
DEFAULT_EXTENSIONS = (".ts", ".tsx")
DEFAULT_EXCLUDE_DIRS = frozenset(
    {"node_modules", ".git", ".next", "dist", "build", "coverage"}
)

# Call-target names
FETCH_NAMES = frozenset({"fetch", "fetchAPI"})
FETCH_MEMBER_SUFFIX = ".fetchAPI"
HTTP_CLIENT_NAME = "axios"
HTTP_VERBS = ("get", "post", "put", "delete", "patch")
QUERY_HOOK = "useQuery"
MUTATION_HOOK = "useMutation"
SWR_HOOK = "useSWR"
# hook keys are allowed to be bare strings without a path separator
HOOK_KEY_CALLEES = frozenset({QUERY_HOOK, SWR_HOOK})
JSON_SERIALIZER = "JSON.stringify"

# URL resolution
BACKEND_URL_NAMES = frozenset({"BACKEND_URL", "NEXT_PUBLIC_BACKEND_URL"})
BACKEND_URL_PLACEHOLDER = "{BACKEND_URL}"
ENV_NAMESPACE_MARKER = "process.env"
MAX_URL_LENGTH = 200

# Generic fallback heuristics
FETCHER_NAME_HINTS = ("fetch", "api", "request")
METHOD_NAME_HINTS = (
    (("post", "create"), "POST"),
    (("put", "update"), "PUT"),
    (("delete", "remove"), "DELETE"),
)

# Translator recursion bound, independent of the visited-name cycle guard
MAX_SCHEMA_DEPTH = 32


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def debug_enabled() -> bool:
    """Whether FETCHMAP_DEBUG asks for debug logging."""
    return _env_flag(ENV_DEBUG)


def _default_source_roots() -> tuple[str, ...]:
    raw = os.environ.get(ENV_SOURCE_ROOTS)
    if not raw:
        return DEFAULT_SOURCE_ROOTS
    return tuple(r.strip().strip("/") for r in raw.split(",") if r.strip())


@dataclass(frozen=True)
class AnalyzerConfig:
    """Which files to load and how to read them."""

    source_roots: tuple[str, ...] = field(
        default_factory=_default_source_roots
    )
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude_dirs: frozenset[str] = DEFAULT_EXCLUDE_DIRS
    tsconfig_name: str = "tsconfig.json"

    def source_globs(self) -> list[str]:
        """Glob patterns relative to the project root, in scan order."""
        globs = []
        for root in self.source_roots:
            prefix = "" if root in ("", ".") else f"{root}/"
            globs.extend(f"{prefix}**/*{ext}" for ext in self.extensions)
        return globs
