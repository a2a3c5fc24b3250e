"""Logging configuration for simroom using structlog."""

from __future__ import annotations

import logging
import logging.config
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from .constants import LOGS_DIR

if TYPE_CHECKING:
    from pathlib import Path

__all__ = ["get_logger", "setup_logging"]


def setup_logging(level: str = "INFO", logs_dir: Path | None = LOGS_DIR, console_level: str | None = None) -> None:
    """Configure structlog for simroom with file and console output.

    Args:
        level: Minimum logging level (e.g., "DEBUG", "INFO", "WARNING", "ERROR")
        logs_dir: Directory for the timestamped log file, or None to log to the console only
        console_level: Level for the console handler, defaults to ``level``.
            The interactive chat raises it so log lines don't interleave with the room.

    """
    level = level.upper()
    console_level = (console_level or level).upper()

    timestamper = structlog.processors.TimeStamper(fmt="iso")
    pre_chain = [
        structlog.stdlib.add_log_level,
        timestamper,
    ]

    handlers: dict[str, dict[str, object]] = {
        "console": {
            "level": console_level,
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "colored",
        },
    }
    log_file = None
    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        log_file = logs_dir / f"simroom_{timestamp}.log"
        handlers["file"] = {
            "level": level,
            "class": "logging.FileHandler",
            "filename": str(log_file),
            "mode": "a",
            "encoding": "utf-8",
            "formatter": "plain",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        structlog.dev.ConsoleRenderer(colors=False),
                    ],
                    "foreign_pre_chain": pre_chain,
                },
                "colored": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        structlog.dev.ConsoleRenderer(
                            colors=True,
                            exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False),
                        ),
                    ],
                    "foreign_pre_chain": pre_chain,
                },
            },
            "handlers": handlers,
            "loggers": {
                "": {
                    "handlers": list(handlers),
                    "level": level,
                    "propagate": False,
                },
                # Provider SDKs are chatty at INFO
                "httpx": {"level": "WARNING"},
                "agno": {"level": "WARNING"},
            },
        },
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = get_logger(__name__)
    logger.info("Logging initialized", log_file=str(log_file) if log_file else None, level=level)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger

    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]
