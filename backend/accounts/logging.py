"""structlog setup for the portal and the account CLI.

LOG_FORMAT selects "json" (one object per line) or "console" (the default).
LOG_LEVEL takes a stdlib level name and defaults to INFO.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"password", "password_hash", "session_id", "cookie"})

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def redact_secrets(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Mask credential-bearing values so they never reach log output."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    value = os.environ.get(name, default).upper() or default
    if value not in choices:
        msg = f"Invalid {name}={value!r}. Must be one of {', '.join(choices)}."
        raise ValueError(msg)
    return value


def _add_handler(handler: logging.Handler, renderer: structlog.types.Processor) -> None:
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        ),
    )
    logging.getLogger().addHandler(handler)


def setup_logging(log_dir: Path | str | None = None, level: int | None = None) -> Path | None:
    """Route structlog through stdlib logging to stdout and, optionally, a file.

    With log_dir, writes to a new file named after the start time and returns
    its path.
    """
    json_mode = _env_choice("LOG_FORMAT", ("JSON", "CONSOLE"), "CONSOLE") == "JSON"
    if level is None:
        level = getattr(logging, _env_choice("LOG_LEVEL", _LOG_LEVELS, "INFO"))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    if level > logging.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    def renderer(colors: bool) -> structlog.types.Processor:
        return structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)

    _add_handler(logging.StreamHandler(sys.stdout), renderer(sys.stdout.isatty()))
    if log_dir is None:
        return None

    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    file_path = dir_path / f"{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"
    _add_handler(logging.FileHandler(file_path), renderer(False))
    return file_path
