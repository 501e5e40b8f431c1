"""Logging for pd.

Everything logs under the ``pdcli`` namespace to stderr. Credentials that
end up in a message (tokens, client secrets, authorization codes and
``Authorization`` header values) are masked by :class:`SecretFilter`
before any handler writes them.
"""

import logging
import re
import sys
from enum import Enum
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "pdcli"

_SECRET_PATTERNS = [
    re.compile(r"(?P<key>\b(?:access_token|refresh_token|client_secret|authtoken|code)[\"']?\s*[=:]\s*[\"']?)(?P<value>[^\s\"'&,\]}]+)"),
    re.compile(r"(?P<key>Bearer\s+)(?P<value>\S+)"),
    re.compile(r"(?P<key>Token token=)(?P<value>\S+)"),
]


class LogLevel(str, Enum):
    """Log level enumeration."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    def to_logging(self) -> int:
        return getattr(logging, self.value.upper())


def redact(value: str, show_chars: int = 4) -> str:
    """Keep the first ``show_chars`` characters of a secret."""
    if len(value) <= show_chars:
        return "*" * len(value)
    return value[:show_chars] + "*" * (len(value) - show_chars)


def mask_secrets(message: str) -> str:
    for pattern in _SECRET_PATTERNS:
        message = pattern.sub(lambda m: m.group("key") + redact(m.group("value")), message)
    return message


class SecretFilter(logging.Filter):
    """Masks credentials in the rendered log message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging(level: LogLevel = LogLevel.INFO, rich_output: bool = True) -> None:
    """Install the stderr handler for one pd invocation.

    Args:
        level: Threshold for pd's own loggers
        rich_output: Render through Rich; plain timestamped lines otherwise
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if rich_output:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    handler.addFilter(SecretFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(level.to_logging())
    logging.getLogger(ROOT_LOGGER).setLevel(level.to_logging())

    # httpx logs every token request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` inside the pd namespace."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class StructuredLogger:
    """Appends bound ``key=value`` context to each message.

    The login flow binds the OAuth application type once and every state
    transition then carries it.
    """

    def __init__(self, name: str, context: dict[str, Any] | None = None):
        self._logger = get_logger(name)
        self._context = dict(context or {})

    def bind(self, **kwargs: Any) -> "StructuredLogger":
        return StructuredLogger(self._logger.name, {**self._context, **kwargs})

    def _log(self, level: int, message: str, fields: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        context = {**self._context, **fields}
        if context:
            pairs = " ".join(f"{k}={v}" for k, v in context.items())
            message = f"{message} [{pairs}]"
        self._logger.log(level, message)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)
