"""Best-effort reduction of URL expressions to string templates.

Dynamic parts that cannot be resolved statically are kept as `{name}`
placeholders so the result still reads as an endpoint template, e.g.
`/api/users/${id}` becomes `/api/users/{id}`.
"""

from __future__ import annotations

import structlog
from tree_sitter import Node

from fetchmap.config import (
    BACKEND_URL_NAMES,
    BACKEND_URL_PLACEHOLDER,
    ENV_NAMESPACE_MARKER,
    HOOK_KEY_CALLEES,
    MAX_URL_LENGTH,
)
from fetchmap.program import nodes
from fetchmap.program.source import SourceFile
from fetchmap.program.symbols import SymbolResolver

logger = structlog.get_logger(__name__)


class UrlResolver:
    """Resolves expression nodes to URL strings."""

    def __init__(self, symbols: SymbolResolver):
        self.symbols = symbols

    def resolve(self, file: SourceFile, node: Node) -> str | None:
        """Resolve an expression, or None when it cannot be determined."""
        return self._resolve(file, node, frozenset())

    def _resolve(
        self,
        file: SourceFile,
        node: Node,
        seen: frozenset[tuple[str, int]],
    ) -> str | None:
        kind = node.type
        if kind == "string":
            return nodes.text(node)[1:-1]
        if kind == "template_string":
            return self._template(file, node, seen)
        if kind == "identifier":
            return self._identifier(file, node, seen)
        if kind == "array":
            elements = [c for c in node.named_children if c.type != "comment"]
            if elements:
                return self._resolve(file, elements[0], seen)
            return None
        if kind == "member_expression":
            raw = nodes.text(node)
            if ENV_NAMESPACE_MARKER in raw:
                return "{" + raw.split(".")[-1].strip() + "}"
            return None
        if kind == "ternary_expression":
            for branch in ("consequence", "alternative"):
                child = node.child_by_field_name(branch)
                if child is None:
                    continue
                resolved = self._resolve(file, child, seen)
                if resolved:
                    return resolved
            return None
        return None

    def _template(
        self,
        file: SourceFile,
        node: Node,
        seen: frozenset[tuple[str, int]],
    ) -> str:
        raw = node.text or b""
        base = node.start_byte
        # skip the opening and closing backticks
        cursor = 1
        parts: list[str] = []
        for sub in node.named_children:
            if sub.type != "template_substitution":
                continue
            start = sub.start_byte - base
            parts.append(raw[cursor:start].decode("utf-8", errors="replace"))
            cursor = sub.end_byte - base

            inner = [c for c in sub.named_children if c.type != "comment"]
            resolved = self._resolve(file, inner[0], seen) if inner else None
            if resolved:
                parts.append(resolved)
            else:
                expr_text = nodes.text(inner[0]) if inner else ""
                parts.append("{" + expr_text + "}")
        parts.append(raw[cursor:-1].decode("utf-8", errors="replace"))
        return "".join(parts)

    def _identifier(
        self,
        file: SourceFile,
        node: Node,
        seen: frozenset[tuple[str, int]],
    ) -> str | None:
        name = nodes.text(node)
        if name in BACKEND_URL_NAMES:
            return BACKEND_URL_PLACEHOLDER

        decl = self.symbols.resolve_identifier(file, node)
        if decl is None:
            return None
        target = self.symbols.variable_initializer(decl)
        if target is None:
            return None
        init_file, init = target
        key = (str(init_file.path), init.start_byte)
        if key in seen:
            logger.debug(
                "url resolution cycle", name=name, file=init_file.rel_path
            )
            return None
        return self._resolve(init_file, init, seen | {key})


def is_valid_api_url(url: str | None, callee: str | None = None) -> bool:
    """Precision gate applied to every resolved URL.

    Hook keys (useQuery / useSWR) may be plain strings; everything else
    needs a path separator. Error-message-looking strings, trailing colons,
    overlong strings and lone placeholders are rejected.
    """
    if url is None:
        return False
    is_hook = callee in HOOK_KEY_CALLEES
    if not is_hook and "/" not in url:
        return False
    if url.endswith(":") or "Error" in url or len(url) > MAX_URL_LENGTH:
        return False
    if url.startswith("{") and url.endswith("}") and "/" not in url:
        return False
    return True
