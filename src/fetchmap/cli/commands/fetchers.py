"""Fetchers command - list discovered fetcher wrappers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Literal

import tyro

from fetchmap import console
from fetchmap.cli._common import build_config, enable_debug, resolve_project
from fetchmap.discovery import discover_fetchers
from fetchmap.errors import ProjectConfigError
from fetchmap.program.source import Program


@dataclass
class Fetchers:
    """Show which functions forward a URL into a network call."""

    project: Annotated[Path, tyro.conf.arg(aliases=("-p",))] = field(
        metadata={"help": "Frontend project root (containing tsconfig.json)"},
    )
    source_roots: str | None = field(
        default=None,
        metadata={"help": "Comma-separated source roots (e.g. 'src,app')"},
    )
    include_seeds: bool = field(
        default=False,
        metadata={"help": "Also list the built-in network primitives"},
    )
    output_format: Literal["table", "json"] = field(
        default="table",
        metadata={"help": "Output format"},
    )
    debug: bool = field(
        default=False,
        metadata={"help": "Enable debug logging"},
    )

    def run(self) -> int:
        """Execute the fetchers command."""
        enable_debug(self.debug)

        root = resolve_project(self.project)
        try:
            program = Program.load(root, build_config(self.source_roots))
        except ProjectConfigError as e:
            console.error(str(e))
            return 1

        registry = discover_fetchers(program)
        entries = (
            dict(registry) if self.include_seeds else registry.discovered()
        )

        if self.output_format == "json":
            print(
                json.dumps(
                    {
                        name: {
                            "paramIndex": info.param_index,
                            "method": info.method,
                        }
                        for name, info in entries.items()
                    },
                    indent=2,
                )
            )
            return 0

        if not entries:
            console.info("no fetcher wrappers found")
            return 0

        console.table(
            f"Fetchers ({len(entries)}, {registry.rounds} rounds)",
            ["name", "param", "method"],
            [
                [name, info.param_index, info.method or "-"]
                for name, info in entries.items()
            ],
        )
        return 0
