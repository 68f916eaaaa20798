"""Fetcher discovery - finds user functions that wrap network calls.

A function is a fetcher wrapper when one of its parameters is forwarded,
verbatim or interpolated into a template literal, into the URL argument of
a call to an already known fetcher. Starting from the built-in primitives,
rounds of discovery run until a round registers nothing new, so wrappers of
wrappers are found at any depth.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

import structlog
from tree_sitter import Node

from fetchmap.config import HTTP_CLIENT_NAME, QUERY_HOOK, SWR_HOOK
from fetchmap.program import nodes
from fetchmap.program.source import FunctionDecl, Program, SourceFile

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FetcherInfo:
    """Where a fetcher takes its URL, and the method it implies if any."""

    param_index: int
    method: str | None = None


SEED_FETCHERS: Mapping[str, FetcherInfo] = MappingProxyType(
    {
        "fetch": FetcherInfo(0),
        HTTP_CLIENT_NAME: FetcherInfo(0),
        f"{HTTP_CLIENT_NAME}.get": FetcherInfo(0, "GET"),
        f"{HTTP_CLIENT_NAME}.post": FetcherInfo(0, "POST"),
        f"{HTTP_CLIENT_NAME}.put": FetcherInfo(0, "PUT"),
        f"{HTTP_CLIENT_NAME}.delete": FetcherInfo(0, "DELETE"),
        f"{HTTP_CLIENT_NAME}.patch": FetcherInfo(0, "PATCH"),
        SWR_HOOK: FetcherInfo(0),
        QUERY_HOOK: FetcherInfo(0),
    }
)


class FetcherRegistry(Mapping[str, FetcherInfo]):
    """Read-only name -> FetcherInfo mapping produced by discovery."""

    def __init__(
        self,
        entries: Mapping[str, FetcherInfo],
        rounds: int = 0,
    ):
        self._entries = dict(entries)
        self.rounds = rounds

    def __getitem__(self, name: str) -> FetcherInfo:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, callee: str) -> FetcherInfo | None:
        """Match a callee by full text, then by its trailing member."""
        info = self._entries.get(callee)
        if info is None and "." in callee:
            info = self._entries.get(callee.rsplit(".", 1)[-1])
        return info

    def discovered(self) -> dict[str, FetcherInfo]:
        """Entries added on top of the built-in seeds."""
        return {
            name: info
            for name, info in self._entries.items()
            if name not in SEED_FETCHERS
        }


def discover_fetchers(
    program: Program,
    seeds: Mapping[str, FetcherInfo] = SEED_FETCHERS,
) -> FetcherRegistry:
    """Compute the fetcher registry for a program.

    Each round reads a frozen snapshot of the registry as it stood after
    the previous round; new entries only become visible to the next round.
    Terminates because every non-final round registers at least one of the
    program's finitely many named functions.
    """
    functions: list[tuple[SourceFile, FunctionDecl]] = [
        (file, fn) for file in program.files for fn in file.iter_functions()
    ]

    snapshot: Mapping[str, FetcherInfo] = MappingProxyType(dict(seeds))
    rounds = 0
    while True:
        rounds += 1
        added: dict[str, FetcherInfo] = {}
        for file, fn in functions:
            if fn.name in snapshot or fn.name in added:
                continue
            index = _forwarded_param(fn, snapshot)
            if index is None:
                continue
            added[fn.name] = FetcherInfo(index)
            logger.debug(
                "registered fetcher wrapper",
                name=fn.name,
                param_index=index,
                file=file.rel_path,
                line=nodes.line_of(fn.node),
                round=rounds,
            )
        if not added:
            break
        snapshot = MappingProxyType({**snapshot, **added})

    registry = FetcherRegistry(snapshot, rounds=rounds)
    logger.info(
        "fetcher discovery complete",
        wrappers=len(registry.discovered()),
        rounds=rounds,
    )
    return registry


def _forwarded_param(
    fn: FunctionDecl, known: Mapping[str, FetcherInfo]
) -> int | None:
    """Index of the parameter fn forwards as a URL, last match wins."""
    if not any(fn.params):
        return None
    found = None
    for call in nodes.descendants_of_type(fn.node, "call_expression"):
        callee = nodes.callee_text(call)
        for name, info in known.items():
            if callee != name and not callee.endswith("." + name):
                continue
            args = nodes.arguments(call)
            if len(args) <= info.param_index:
                continue
            index = _matching_param(fn, args[info.param_index])
            if index is not None:
                found = index
    return found


def _matching_param(fn: FunctionDecl, arg: Node) -> int | None:
    arg_text = nodes.text(arg)
    is_template = arg.type == "template_string"
    for i, param in enumerate(fn.params):
        if param is None:
            continue
        if arg_text == param:
            return i
        if is_template and "${" + param + "}" in arg_text:
            return i
    return None
