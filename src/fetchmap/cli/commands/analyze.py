"""Analyze command - extract endpoint schemas from a frontend project."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated

import structlog
import tyro

from fetchmap import console
from fetchmap.analyzer import FrontendAnalyzer
from fetchmap.cli._common import build_config, enable_debug, resolve_project
from fetchmap.errors import ProjectConfigError
from fetchmap.schema_ir import schemas_to_json_ready

logger = structlog.get_logger(__name__)


@dataclass
class Analyze:
    """Extract Schema IR for every HTTP call the frontend makes."""

    project: Annotated[Path, tyro.conf.arg(aliases=("-p",))] = field(
        metadata={"help": "Frontend project root (containing tsconfig.json)"},
    )
    output: Annotated[Path | None, tyro.conf.arg(aliases=("-o",))] = field(
        default=None,
        metadata={"help": "Write the JSON here instead of stdout"},
    )
    indent: int = field(
        default=2,
        metadata={"help": "JSON indentation"},
    )
    source_roots: str | None = field(
        default=None,
        metadata={"help": "Comma-separated source roots (e.g. 'src,app')"},
    )
    log_file: Path | None = field(
        default=None,
        metadata={"help": "Also write JSON log lines to this file"},
    )
    debug: bool = field(
        default=False,
        metadata={"help": "Enable debug logging"},
    )

    def run(self) -> int:
        """Execute the analyze command."""
        enable_debug(self.debug, self.log_file)

        root = resolve_project(self.project)
        config = build_config(self.source_roots)
        try:
            with console.status(f"analyzing {root}..."):
                analyzer = FrontendAnalyzer(root, config)
                results = analyzer.analyze()
        except ProjectConfigError as e:
            console.error(str(e))
            return 1

        payload = json.dumps(
            schemas_to_json_ready(results), indent=self.indent or None
        )
        if self.output is None:
            print(payload)
            return 0

        out_path = self.output.expanduser().resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload + "\n", encoding="utf-8")
        logger.debug("wrote schemas", path=str(out_path), count=len(results))
        console.success(f"wrote {len(results)} schemas to {out_path}")
        return 0
