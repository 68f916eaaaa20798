"""Call-site recognizers.

Each recognizer handles one calling convention and turns a matching call
expression into a SchemaIR record. The analyzer tries them in
DEFAULT_PARSER_ORDER and keeps the first record produced.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from tree_sitter import Node

from fetchmap.config import (
    FETCH_MEMBER_SUFFIX,
    FETCH_NAMES,
    FETCHER_NAME_HINTS,
    HTTP_CLIENT_NAME,
    HTTP_VERBS,
    JSON_SERIALIZER,
    METHOD_NAME_HINTS,
    MUTATION_HOOK,
    QUERY_HOOK,
)
from fetchmap.discovery import FetcherInfo, FetcherRegistry
from fetchmap.program import nodes
from fetchmap.program.source import SourceFile
from fetchmap.program.types import StaticType, TypeChecker
from fetchmap.schema_ir import ObjectSchema, SchemaIR
from fetchmap.translator import type_to_schema
from fetchmap.url_resolver import UrlResolver, is_valid_api_url

DEFAULT_METHOD = "GET"
RESPONSE_STATUS = 200


@dataclass(frozen=True)
class CallSite:
    """A call expression together with the file it lives in."""

    file: SourceFile
    node: Node

    @property
    def callee(self) -> str:
        return nodes.callee_text(self.node)

    @property
    def arguments(self) -> list[Node]:
        return nodes.arguments(self.node)

    @property
    def type_arguments(self) -> list[Node]:
        return nodes.type_arguments(self.node)

    @property
    def line(self) -> int:
        return nodes.line_of(self.node)


@dataclass
class ParseContext:
    """Shared analysis services handed to every recognizer."""

    types: TypeChecker
    urls: UrlResolver
    registry: FetcherRegistry


class CallSiteParser(ABC):
    """Recognizer for one calling convention."""

    name: str = "base"

    def __init__(self, ctx: ParseContext):
        self.ctx = ctx

    @abstractmethod
    def try_parse(self, site: CallSite) -> SchemaIR | None:
        """Return a record for a recognized call, else None."""
        ...

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def resolve_url(self, site: CallSite, node: Node) -> str | None:
        return self.ctx.urls.resolve(site.file, node)

    def resolve_method(self, site: CallSite, node: Node) -> str | None:
        value = self.ctx.urls.resolve(site.file, node)
        return value.upper() if value else None

    def schema_of(self, site: CallSite, node: Node) -> ObjectSchema:
        return type_to_schema(self.ctx.types.type_of(site.file, node))

    def body_schema(self, site: CallSite, value: Node) -> ObjectSchema:
        """Schema of a request body, looking through JSON.stringify(x)."""
        if (
            value.type == "call_expression"
            and nodes.callee_text(value) == JSON_SERIALIZER
        ):
            args = nodes.arguments(value)
            if args:
                return self.schema_of(site, args[0])
        return self.schema_of(site, value)

    def declared_response(
        self, site: CallSite
    ) -> dict[int, ObjectSchema] | None:
        """Response schema from an explicit type argument (`get<User>()`)."""
        targs = site.type_arguments
        if not targs:
            return None
        declared = self.ctx.types.type_from_annotation(site.file, targs[0])
        return {RESPONSE_STATUS: type_to_schema(declared)}

    def chained_response(
        self, site: CallSite
    ) -> dict[int, ObjectSchema] | None:
        """Type argument, else the return type of a `.then(cb)` callback."""
        declared = self.declared_response(site)
        if declared is not None:
            return declared
        callback = nodes.continuation_callback(site.node)
        if callback is None:
            return None
        returned: StaticType = self.ctx.types.return_type_of(
            site.file, callback
        )
        return {RESPONSE_STATUS: type_to_schema(returned)}


class RawFetchParser(CallSiteParser):
    """`fetch(url, init)` and the `fetchAPI` helper form."""

    name = "fetch"

    def try_parse(self, site: CallSite) -> SchemaIR | None:
        callee = site.callee
        if callee not in FETCH_NAMES and not callee.endswith(
            FETCH_MEMBER_SUFFIX
        ):
            return None
        args = site.arguments
        if not args:
            return None

        url = self.resolve_url(site, args[0])
        if not is_valid_api_url(url, callee):
            return None

        method = DEFAULT_METHOD
        request = None
        if len(args) >= 2 and args[1].type == "object":
            init = args[1]
            method_node = nodes.object_property(init, "method")
            if method_node is not None:
                method = self.resolve_method(site, method_node) or method
            body_node = nodes.object_property(init, "body")
            if body_node is not None:
                request = self.body_schema(site, body_node)

        return SchemaIR(
            endpoint=url,
            method=method,
            request=request,
            response=self.chained_response(site),
        )


class HttpClientParser(CallSiteParser):
    """`axios.<verb>(url, data)` and bare `axios(...)` calls."""

    name = "http-client"

    def try_parse(self, site: CallSite) -> SchemaIR | None:
        callee = site.callee
        if callee == HTTP_CLIENT_NAME:
            return self._parse_config_call(site)
        if not callee.startswith(HTTP_CLIENT_NAME + "."):
            return None

        method = DEFAULT_METHOD
        verb = nodes.member_name(nodes.callee(site.node))
        if verb in HTTP_VERBS:
            method = verb.upper()

        args = site.arguments
        if not args:
            return None
        url = self.resolve_url(site, args[0])
        if not is_valid_api_url(url, callee):
            return None

        request = None
        if method != DEFAULT_METHOD and len(args) > 1:
            request = self.schema_of(site, args[1])

        return SchemaIR(
            endpoint=url,
            method=method,
            request=request,
            response=self.declared_response(site),
        )

    def _parse_config_call(self, site: CallSite) -> SchemaIR | None:
        # axios(url, config) or axios({ url, method, data })
        args = site.arguments
        if not args:
            return None
        if args[0].type == "object":
            config = args[0]
            url_node = nodes.object_property(config, "url")
            if url_node is None:
                return None
        else:
            url_node = args[0]
            config = args[1] if len(args) > 1 else None
            if config is not None and config.type != "object":
                config = None

        url = self.resolve_url(site, url_node)
        if not is_valid_api_url(url, site.callee):
            return None

        method = DEFAULT_METHOD
        request = None
        if config is not None:
            method_node = nodes.object_property(config, "method")
            if method_node is not None:
                method = self.resolve_method(site, method_node) or method
            data_node = nodes.object_property(config, "data")
            if data_node is not None and method != DEFAULT_METHOD:
                request = self.schema_of(site, data_node)

        return SchemaIR(
            endpoint=url,
            method=method,
            request=request,
            response=self.declared_response(site),
        )


class QueryHookParser(CallSiteParser):
    """`useQuery({ queryKey: [url, ...] })` and `useMutation(...)`."""

    name = "query-hook"

    def try_parse(self, site: CallSite) -> SchemaIR | None:
        callee = site.callee
        if callee not in (QUERY_HOOK, MUTATION_HOOK):
            return None
        args = site.arguments
        if not args or args[0].type != "object":
            return None

        key = nodes.object_property(args[0], "queryKey")
        if key is None or key.type != "array":
            return None
        elements = [c for c in key.named_children if c.type != "comment"]
        if not elements:
            return None

        url = self.resolve_url(site, elements[0])
        if not is_valid_api_url(url, callee):
            return None

        return SchemaIR(
            endpoint=url,
            method="POST" if callee == MUTATION_HOOK else DEFAULT_METHOD,
            response=self.declared_response(site),
        )


class GenericFetcherParser(CallSiteParser):
    """Calls to discovered wrappers, or anything named like a fetcher."""

    name = "generic"

    def try_parse(self, site: CallSite) -> SchemaIR | None:
        callee = site.callee
        info = self.ctx.registry.lookup(callee)
        if info is None and _looks_like_fetcher(callee):
            info = FetcherInfo(0)
        if info is None:
            return None

        args = site.arguments
        if len(args) <= info.param_index:
            return None
        url = self.resolve_url(site, args[info.param_index])
        if not is_valid_api_url(url, callee):
            return None

        method = _method_from_name(callee, info.method or DEFAULT_METHOD)
        # every options object may override; the last one wins
        for arg in args:
            if arg.type != "object":
                continue
            method_node = nodes.object_property(arg, "method")
            if method_node is not None:
                method = self.resolve_method(site, method_node) or method

        request = None
        for i, arg in enumerate(args):
            if arg.type == "object":
                body_node = nodes.object_property(
                    arg, "body"
                ) or nodes.object_property(arg, "data")
                if body_node is not None:
                    request = self.body_schema(site, body_node)
            elif (
                method != DEFAULT_METHOD
                and i != info.param_index
                and not is_valid_api_url(
                    self.resolve_url(site, arg) or "", callee
                )
            ):
                request = self.schema_of(site, arg)

        return SchemaIR(
            endpoint=url,
            method=method,
            request=request,
            response=self.chained_response(site),
        )


def _looks_like_fetcher(callee: str) -> bool:
    lowered = callee.lower()
    return any(hint in lowered for hint in FETCHER_NAME_HINTS)


def _method_from_name(callee: str, default: str) -> str:
    lowered = callee.lower()
    for hints, method in METHOD_NAME_HINTS:
        if any(hint in lowered for hint in hints):
            return method
    return default


DEFAULT_PARSER_ORDER: tuple[type[CallSiteParser], ...] = (
    RawFetchParser,
    HttpClientParser,
    QueryHookParser,
    GenericFetcherParser,
)


def build_parsers(ctx: ParseContext) -> list[CallSiteParser]:
    """Instantiate the recognizer chain in priority order."""
    return [parser_cls(ctx) for parser_cls in DEFAULT_PARSER_ORDER]
