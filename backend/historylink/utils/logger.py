# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Structured Logging
Every conflation stage logs a snake_case event with keyword context so a
run can be replayed from its log alone. The engine never configures
logging on import: embedding applications call configure_logging() once,
or route structlog themselves.
"""

import logging
import sys
from typing import Any, Optional, TextIO

import structlog
from structlog.types import EventDict, Processor

from historylink.config import get_settings


def _add_app_info(
    logger: Any, method: str, event_dict: EventDict
) -> EventDict:
    """Inject application name into every log entry."""
    event_dict["app"] = "historylink"
    return event_dict


def configure_logging(
    log_level: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Console output at DEBUG, one JSON object per line otherwise.

    Args:
        log_level: DEBUG/INFO/WARNING/ERROR. Defaults to config.
        stream:    Output stream. Defaults to stderr.
    """
    level_name = (log_level or get_settings().log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_app_info,
    ]
    if level_name == "DEBUG":
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "historylink") -> structlog.BoundLogger:
    """
    Return a structlog bound logger.

    Usage:
        log = get_logger(__name__)
        log.info("greedy_match_selected", before="n1", after="n2", cost=0.1)

    To tag every entry of one conflation run (e.g. a map tile):
        structlog.contextvars.bind_contextvars(tile="12/2048/1361")
        conflate(befores, afters)
        structlog.contextvars.clear_contextvars()
    """
    return structlog.get_logger(name)
