"""Structured logging for import, export and bundle operations.

Log lines go to stderr (and optionally a file) so they never mix with the
CSV, JSON or table output the CLI prints to stdout.

Log levels:
- INFO (20): Batch summaries and written files (default)
- VERBOSE (15): Between INFO and DEBUG, for quieter troubleshooting
- DEBUG (10): Skipped rows, dropped references, sink retries
- TRACE (5): Everything
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

TRACE = 5
VERBOSE = 15

for _level, _name in ((TRACE, "TRACE"), (VERBOSE, "VERBOSE")):
    logging.addLevelName(_level, _name)

LOG_LEVELS: dict[str, int] = {
    name: logging.getLevelName(name)
    for name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
}
LOG_LEVELS.update(TRACE=TRACE, VERBOSE=VERBOSE)


def get_log_level(level: str) -> int:
    """Numeric level for a level name; unknown names fall back to INFO."""
    return LOG_LEVELS.get(level.strip().upper(), logging.INFO)


class LogContext:
    """
    Bind batch details to every log line emitted inside the block.

    Contexts nest; leaving a block restores whatever the enclosing block
    had bound.

    Usage:
        with LogContext(entity_type="Owner", source_filename="owners.csv"):
            logger.info("Starting import batch")
    """

    def __init__(self, **bindings: Any) -> None:
        self.bindings = bindings
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.bindings)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


def _handlers(log_file: str | Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def _processors(json_logs: bool) -> list[Any]:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: str | Path | None = None,
) -> None:
    """
    Route structlog through the standard logging module.

    Safe to call more than once; the latest call wins.

    Args:
        level: Level name (TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render one JSON object per line instead of console output
        log_file: Optional file that receives a copy of every line
    """
    log_level = get_log_level(level)

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=_handlers(log_file),
        force=True,
    )

    structlog.configure(
        processors=_processors(json_logs),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
