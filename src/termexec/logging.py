"""Logging for termexec.

Everything logs under the ``termexec`` logger. Records that belong to one
command execution carry its id (see get_execution_logger), so interleaved
executions can be told apart in a shared log file:

    12:00:01 debug termexec.race [exec-3]: 'npm test' settled by completion

Handlers are installed by setup_logging(); until then nothing is printed.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from termexec.config.schema import LoggingConfig

LOG_ENV_VAR = "TERMEXEC_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(execution_id)s]: %(message)s"

logger = logging.getLogger("termexec")

_initialized = False

# -v count to level, 0 = errors only
_VERBOSITY = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)


class ExecutionLogAdapter(logging.LoggerAdapter):
    """Stamps every record with the execution it belongs to."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs.setdefault("extra", {}).update(self.extra or {})
        return msg, kwargs


class _ExecutionIdFilter(logging.Filter):
    """Fills in execution_id for records logged outside an execution."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "execution_id"):
            record.execution_id = "-"
        return True


class _Formatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Pick the effective log level; verbose (a -v count) wins over level."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY[max(0, min(config.verbose, len(_VERBOSITY) - 1))]
    if config.level:
        level = logging.getLevelName(config.level.upper())
        return level if isinstance(level, int) else logging.INFO
    return logging.INFO


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install handlers on the termexec logger. Later calls are no-ops.

    Logs go to the configured file (or $TERMEXEC_LOG). Without a file they
    go to stderr, but only when stderr is a terminal, so a host process
    reading our output never sees log lines mixed in.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)

    path = config.file if config and config.file else os.environ.get(LOG_ENV_VAR)
    handler: logging.Handler | None = None
    if path:
        try:
            handler = logging.FileHandler(os.path.expanduser(path), encoding="utf-8")
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[termexec] Failed to open log file: {e}", file=sys.stderr)
    if handler is None and sys.stderr.isatty():
        handler = logging.StreamHandler(sys.stderr)
    if handler is None:
        return

    handler.setLevel(level)
    handler.addFilter(_ExecutionIdFilter())
    handler.setFormatter(_Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)


def reset_logging() -> None:
    """Drop installed handlers so setup_logging() can run again."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    _initialized = False


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the termexec logger, or its child ``termexec.<name>``."""
    if name:
        return logger.getChild(name)
    return logger


def get_execution_logger(name: str, execution_id: str) -> ExecutionLogAdapter:
    """Return a child logger whose records carry execution_id."""
    return ExecutionLogAdapter(get_logger(name), {"execution_id": execution_id})
