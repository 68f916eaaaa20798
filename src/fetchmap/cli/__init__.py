"""fetchmap CLI - extract endpoint contracts from TypeScript frontends.

Uses tyro for type-driven CLI generation from dataclasses.
"""

from __future__ import annotations

from typing import Annotated

import tyro

from fetchmap.cli.commands.analyze import Analyze
from fetchmap.cli.commands.fetchers import Fetchers

# Type aliases for subcommand annotations
_Analyze = Annotated[Analyze, tyro.conf.subcommand("analyze")]
_Fetchers = Annotated[Fetchers, tyro.conf.subcommand("fetchers")]

Command = _Analyze | _Fetchers


def main(args: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    # configure structlog (respects FETCHMAP_DEBUG env var)
    from fetchmap.logging_config import configure_logging

    configure_logging()

    try:
        cmd = tyro.cli(
            Command,
            prog="fetchmap",
            description="Map the HTTP endpoints a frontend calls.",
            args=args,
        )
        return cmd.run()
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        from fetchmap import console

        console.error(str(e))
        return 1
