from __future__ import annotations

import logging
from typing import List, Optional

import structlog
from structlog.typing import FilteringBoundLogger, Processor


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Route planner events through structlog.

    Every event carries the emitting module (`logger`), the level and an ISO
    timestamp, plus any context bound with `structlog.contextvars` such as the
    plan date. Clamped check-in fields, skipped content categories and
    fallback plans are all warnings, so `level="WARNING"` keeps only those.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format="%(message)s")

    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_logger(name: Optional[str] = None) -> FilteringBoundLogger:
    """Module logger; call as `get_logger(__name__)` so events name their component."""
    return structlog.get_logger(name)
