"""
structlog setup for the operator process.

Events are rendered as JSON lines in production and for the console
elsewhere. Every event carries the operator version and the namespace it
watches.
"""
import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from esoperator.config.settings import settings


def add_operator_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["operator_version"] = settings.app_version
    event_dict["watched_namespace"] = settings.k8s_namespace or "all"
    return event_dict


def configure_logging() -> None:
    """Route structlog through stdlib logging at the configured level."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_operator_context,
        structlog.processors.format_exc_info,
    ]
    if settings.is_production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,  # type: ignore
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # watch streams log every chunk at debug level
    logging.getLogger("kubernetes_asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
