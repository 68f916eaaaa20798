"""structlog configuration for fetchmap.

Logs go to stderr so that the JSON written to stdout by the CLI stays
machine-readable. Set FETCHMAP_DEBUG=1 to lower the level to DEBUG.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

from fetchmap.config import debug_enabled


def configure_logging(
    debug: bool | None = None,
    log_file: Path | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        debug: Force debug level on/off. None = read FETCHMAP_DEBUG.
        log_file: Optional path that additionally receives JSON lines.
    """
    if debug is None:
        debug = debug_enabled()
    level = logging.DEBUG if debug else logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%H:%M:%S"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            ],
            foreign_pre_chain=shared_processors,
        )
    )
    root.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.JSONRenderer(),
                ],
                foreign_pre_chain=shared_processors,
            )
        )
        root.addHandler(file_handler)

    root.setLevel(level)
