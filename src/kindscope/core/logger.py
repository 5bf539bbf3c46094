"""
Structured logging with key=value and JSON output support.

Wraps the standard library ``logging`` module so every log line reads as an
event name followed by ``key=value`` pairs, e.g.::

    info kindscope.session session_settled relay=wss://nos.lol outcome=complete events=12

Values containing spaces, equals signs, or quotes are escaped and wrapped in
double quotes; long values are truncated.

[StructuredFormatter][kindscope.core.logger.StructuredFormatter] reads the
``structured_kv`` extra attached by [Logger][kindscope.core.logger.Logger] and
is installed on the root handler by the CLI, so plain ``logging.getLogger()``
calls in the models and utils layers share the same layout.

Examples:
    ```python
    from kindscope.core.logger import Logger

    logger = Logger("kindscope.fanout")
    logger.info("fetch_started", relays=13)
    # Output: fetch_started relays=13

    json_logger = Logger("kindscope.fanout", json_output=True)
    json_logger.info("fetch_started", relays=13)
    # Output: {"timestamp": "...", "level": "info", ..., "relays": 13}
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


_TRUNCATION_MARKER = "...<truncated {} chars>"


def _truncate(value: str, max_length: int | None) -> str:
    if max_length and len(value) > max_length:
        return value[:max_length] + _TRUNCATION_MARKER.format(len(value) - max_length)
    return value


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Args:
        kwargs: Key-value pairs to format.
        max_value_length: Maximum characters per value before truncation.
            Pass None to disable truncation.
        prefix: String prepended to the output (default: single space).

    Returns:
        Formatted string, e.g. ' key1=value1 key2="value with spaces"'.
        Returns empty string if kwargs is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for key, value in kwargs.items():
        text = _truncate(str(value), max_value_length)
        if not text or any(char in text for char in " =\"'"):
            escaped = text.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{key}="{escaped}"')
        else:
            parts.append(f"{key}={text}")

    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Formats every log record as ``level name message key=value ...``.

    Records without ``structured_kv`` (plain ``logging.getLogger()`` calls)
    are emitted with the same prefix and no pairs.

    Args:
        json_output: Emit one JSON object per record instead, with the same
            keys as [Logger][kindscope.core.logger.Logger] in JSON mode.
    """

    def __init__(self, *, json_output: bool = False) -> None:
        super().__init__()
        self._json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if self._json_output:
            payload = {
                "timestamp": datetime.datetime.fromtimestamp(record.created, datetime.UTC).isoformat(),
                "level": record.levelname.lower(),
                "logger": record.name,
                "message": record.getMessage(),
                **extra,
            }
            if record.exc_info:
                payload["exception"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        line = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        if extra:
            line += format_kv_pairs(extra)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class Logger:
    """Structured logger that appends keyword arguments as extra fields.

    Every public method mirrors the standard logging API with an added
    ``**kwargs`` parameter carrying the structured fields.

    Args:
        name: Name passed to ``logging.getLogger``.
        json_output: Emit one JSON object per record instead of key=value pairs.
        max_value_length: Truncation limit for individual values (default 1000).
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = (
            self._DEFAULT_MAX_VALUE_LENGTH if max_value_length is None else max_value_length
        )

    @property
    def name(self) -> str:
        return self._logger.name

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _format_json(self, msg: str, level: int, kwargs: dict[str, Any]) -> str:
        record = {
            "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            "level": logging.getLevelName(level).lower(),
            "logger": self._logger.name,
            "message": msg,
            **{key: self._clip(value) for key, value in kwargs.items()},
        }
        return json.dumps(record, default=str)

    def _clip(self, value: Any) -> Any:
        if isinstance(value, (bool, int, float)) or value is None:
            return value
        return _truncate(str(value), self._max_value_length)

    def _emit(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if self._json_output:
            self._logger.log(level, self._format_json(msg, level, kwargs), exc_info=exc_info)
            return
        extra = {"structured_kv": {k: self._clip(v) for k, v in kwargs.items()}} if kwargs else {}
        self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        """Log a DEBUG level message with optional key=value pairs."""
        self._emit(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        """Log an INFO level message with optional key=value pairs."""
        self._emit(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        """Log a WARNING level message with optional key=value pairs."""
        self._emit(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        """Log an ERROR level message with optional key=value pairs."""
        self._emit(logging.ERROR, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log an ERROR level message with the current traceback."""
        self._emit(logging.ERROR, msg, kwargs, exc_info=True)
