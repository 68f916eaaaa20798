"""FrontendAnalyzer - drives a full analysis run over one project."""

from __future__ import annotations

from pathlib import Path

import structlog

from fetchmap.config import AnalyzerConfig
from fetchmap.discovery import FetcherRegistry, discover_fetchers
from fetchmap.errors import ProjectConfigError
from fetchmap.parsers import (
    CallSite,
    CallSiteParser,
    ParseContext,
    build_parsers,
)
from fetchmap.program.source import Program
from fetchmap.program.symbols import SymbolResolver
from fetchmap.program.types import TypeChecker
from fetchmap.schema_ir import SchemaIR
from fetchmap.url_resolver import UrlResolver

logger = structlog.get_logger(__name__)


class FrontendAnalyzer:
    """Extracts the HTTP endpoints a TypeScript frontend calls.

    Construction loads the program (unless an already-loaded `program` is
    passed) and runs fetcher discovery; analyze() walks every call
    expression and returns merged SchemaIR records.

    Raises:
        ProjectConfigError: from the constructor when the project root or
            its tsconfig cannot be used.
    """

    def __init__(
        self,
        project_path: Path | None = None,
        config: AnalyzerConfig | None = None,
        program: Program | None = None,
    ):
        self.config = config or AnalyzerConfig()
        if program is None:
            if project_path is None:
                raise ProjectConfigError("no project path given")
            program = Program.load(Path(project_path), self.config)
        self.program = program
        self.symbols = SymbolResolver(program)
        self.types = TypeChecker(program, self.symbols)
        self.urls = UrlResolver(self.symbols)
        self.registry: FetcherRegistry = discover_fetchers(program)
        self.parsers: list[CallSiteParser] = build_parsers(
            ParseContext(
                types=self.types, urls=self.urls, registry=self.registry
            )
        )

    def analyze(self) -> list[SchemaIR]:
        """Run the parser chain on every call site and merge by key."""
        merged: dict[str, SchemaIR] = {}
        calls = 0
        for file in self.program.files:
            for node in file.iter_calls():
                calls += 1
                schema = self.parse_call(CallSite(file, node))
                if schema is None:
                    continue
                existing = merged.get(schema.key)
                if existing is None:
                    merged[schema.key] = schema
                else:
                    existing.merge(schema)

        logger.info(
            "analysis complete",
            files=len(self.program.files),
            calls=calls,
            endpoints=len(merged),
        )
        return list(merged.values())

    def parse_call(self, site: CallSite) -> SchemaIR | None:
        """First record any recognizer produces for one call site.

        A recognizer that raises is treated as not matching.
        """
        for parser in self.parsers:
            try:
                schema = parser.try_parse(site)
            except Exception as e:
                logger.debug(
                    "parser failed on call site",
                    parser=parser.name,
                    file=site.file.rel_path,
                    line=site.line,
                    error=str(e),
                )
                continue
            if schema is not None:
                logger.debug(
                    "matched call site",
                    parser=parser.name,
                    method=schema.method,
                    endpoint=schema.endpoint,
                    file=site.file.rel_path,
                    line=site.line,
                )
                return schema
        return None
