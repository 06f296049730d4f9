"""Structured logging configuration using structlog.

JSON output for production runs (one event per line, easy to grep or ship)
and colored console output for development and desktop use. Prompts and
raw model output can be long; they are clipped before rendering.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog
from structlog.types import EventDict, WrappedLogger


APP_LOGGER_NAME = "grocery-sorter"

# Event keys that may carry whole prompts or model responses
MODEL_TEXT_KEYS = ("prompt", "content")
MAX_LOGGED_TEXT = 2000

NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp every log event with the application name."""
    event_dict["app"] = APP_LOGGER_NAME
    return event_dict


def clip_model_text(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Shorten prompt/response text so one event stays one readable line."""
    for key in MODEL_TEXT_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_LOGGED_TEXT:
            event_dict[key] = f"{value[:MAX_LOGGED_TEXT]}... [{len(value) - MAX_LOGGED_TEXT} chars clipped]"
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    stream: Optional[TextIO] = None,
) -> None:
    """Route structlog through the standard library logging module.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: "production" selects JSON output
        stream: Output stream; stdout by default (the CLI logs to stderr)

    Safe to call more than once; the root handler is replaced, not added.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    stream = stream if stream is not None else sys.stdout
    is_production = environment.lower() == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        clip_model_text,
    ]
    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors)
    )
    handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=logging.getLevelName(level),
        environment=environment,
        renderer="json" if is_production else "console",
    )
