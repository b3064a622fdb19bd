"""
structlog setup for the analysis service.

Each record is one line: event_type (snake_case event name), level,
ISO-8601 UTC timestamp, logger name, and whatever context the call site
binds (doc_id, ref, error, result_id, ...). LOG_FORMAT=json renders JSON for
log shipping; any other value renders the console format.

Imports nothing from backend_docscan, so every module can log at import time.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def _rename_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def build_processors(log_format: str) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.format_exc_info,
        _rename_event,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty(), event_key="event_type"))
    return processors


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    level_value = logging.getLevelName(level.strip().upper())
    if not isinstance(level_value, int):
        level_value = logging.INFO
    structlog.configure(
        processors=build_processors(log_format.strip().lower()),
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging(os.getenv("LOG_LEVEL", "INFO"), os.getenv("LOG_FORMAT", "json"))


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger with logger=name bound.

        logger = get_logger(__name__)
        logger.info("analysis_saved", doc_id=doc_id, matches=2)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_document(doc_id: str, name: str = "backend_docscan") -> structlog.BoundLogger:
    """Logger for one analysis: every record carries doc_id."""
    return get_logger(name).bind(doc_id=doc_id)
