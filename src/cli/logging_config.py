"""Structured logging configuration using structlog."""

import logging
import re
import sys
from pathlib import Path
from typing import Optional

import structlog

# Patterns to redact from log output
_REDACT_PATTERNS = [
    # GitHub tokens: classic, fine-grained, app installation
    (re.compile(r"(gh[pousr]_[a-zA-Z0-9]{4})[a-zA-Z0-9]{16,}"), r"\1...REDACTED"),
    (re.compile(r"(github_pat_[a-zA-Z0-9]{4})[a-zA-Z0-9_]{16,}"), r"\1...REDACTED"),
    (re.compile(r"(Bearer\s+)[a-zA-Z0-9_.-]{20,}"), r"\1REDACTED"),
    # Webhook signatures
    (re.compile(r"(sha256=)[a-f0-9]{64}"), r"\1REDACTED"),
    # Generic secrets in key=value
    (re.compile(r"((?:token|secret)['\"]?\s*[:=]\s*['\"]?)[a-zA-Z0-9_-]{10,}"), r"\1REDACTED"),
]


def _redact_sensitive(_, __, event_dict: dict) -> dict:
    """Structlog processor to redact tokens and signatures from log output."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            for pattern, replacement in _REDACT_PATTERNS:
                value = pattern.sub(replacement, value)
            event_dict[key] = value
    return event_dict


def setup_logging(
    json_mode: bool = False,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    file_level: str = "DEBUG",
) -> None:
    """Configure structlog with appropriate renderer.

    Args:
        json_mode: Use JSON renderer (for daemon/machine consumption).
                   False = console renderer (Rich-compatible, for CLI).
        level: Console log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional file that always receives JSON lines.
        file_level: Log level for the file handler.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Shared processors
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_sensitive,
    ]

    if json_mode:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging to use structlog formatter
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    if log_file:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        root.addHandler(file_handler)
        root.setLevel(min(log_level, file_handler.level))

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def setup_logging_from_config(config: dict, verbose: bool = False) -> None:
    """Configure logging from the ``logging`` and ``paths`` config sections."""
    log_config = config.get("logging", {})
    setup_logging(
        json_mode=log_config.get("json", False),
        level="DEBUG" if verbose else log_config.get("level", "INFO"),
        log_file=config.get("paths", {}).get("log_file"),
        file_level=log_config.get("file_level", "DEBUG"),
    )
