"""
Structured logging with key=value and JSON output.

[Logger][poddns.core.logger.Logger] wraps a stdlib ``logging.Logger`` and
turns keyword arguments into structured fields. Messages are short
snake_case event names (``cycle_completed``, ``pod_skipped``) and all
variable data goes into the fields.

Two renderings are supported:

* key=value (default): fields travel on the record as the
  ``structured_kv`` extra and are appended by
  [StructuredFormatter][poddns.core.logger.StructuredFormatter].
* JSON: the whole record is serialized into the message, for log
  collectors that parse JSON lines.

The CLI installs ``StructuredFormatter`` on the root handler, so records
from plain ``logging.getLogger(__name__)`` calls in the models and utils
layers come out in the same ``level name message`` shape.

Examples:
    ```python
    from poddns.core.logger import Logger

    logger = Logger("pod")
    logger.info("cycle_completed", endpoints=3, targets=5)
    # info pod cycle_completed endpoints=3 targets=5

    scoped = logger.bind(namespace="kube-system")
    scoped.debug("pod_skipped", pod="web-0")
    # debug pod pod_skipped namespace=kube-system pod=web-0
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


def _truncate(value: Any, max_value_length: int | None) -> Any:
    """Shorten the string form of *value* past *max_value_length* characters."""
    s = str(value)
    if max_value_length and len(s) > max_value_length:
        return s[:max_value_length] + f"...<truncated {len(s) - max_value_length} chars>"
    return value


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Render a dict as space-separated ``key=value`` pairs.

    Values are truncated to *max_value_length* characters. Values that are
    empty or contain whitespace, ``=`` or quotes are wrapped in double
    quotes with backslashes and double quotes escaped.

    Args:
        kwargs: Fields to render, in insertion order.
        max_value_length: Truncation limit per value; None disables it.
        prefix: Prepended to a non-empty result.

    Returns:
        e.g. ``' dns_name=a.example.com error="node not found"'``, or ``""``
        for an empty dict.
    """
    if not kwargs:
        return ""

    parts = []
    for k, v in kwargs.items():
        s = str(_truncate(v, max_value_length))
        if not s or " " in s or "=" in s or '"' in s or "'" in s:
            escaped = s.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{k}="{escaped}"')
        else:
            parts.append(f"{k}={s}")

    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Formats every record as ``level name message key=value ...``.

    Fields come from the ``structured_kv`` extra attached by
    [Logger][poddns.core.logger.Logger]; records without it are emitted with
    the same prefix and no fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            base += format_kv_pairs(extra)
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class Logger:
    """Structured logger whose keyword arguments become record fields.

    Args:
        name: Name passed to ``logging.getLogger``; usually a service name.
        json_output: Emit JSON objects instead of key=value pairs.
        max_value_length: Truncation limit per field value (default 1000).
        context: Fields prepended to every record. Prefer
            [bind()][poddns.core.logger.Logger.bind] over passing this
            directly.
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        if max_value_length is None:
            max_value_length = self._DEFAULT_MAX_VALUE_LENGTH
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = max_value_length
        self._context: dict[str, Any] = dict(context or {})

    @property
    def name(self) -> str:
        return self._logger.name

    def bind(self, **context: Any) -> Logger:
        """Return a logger for the same name with extra fixed fields.

        Bound fields appear before per-call fields; a per-call field with
        the same key wins.
        """
        return Logger(
            self._logger.name,
            json_output=self._json_output,
            max_value_length=self._max_value_length,
            context={**self._context, **context},
        )

    def _format_json(self, msg: str, level: str, fields: dict[str, Any]) -> str:
        record = {
            "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            "level": level,
            "logger": self._logger.name,
            "message": msg,
            **{k: _truncate(v, self._max_value_length) for k, v in fields.items()},
        }
        return json.dumps(record, default=str)

    def _log(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        fields = {**self._context, **kwargs}
        if self._json_output:
            text = self._format_json(msg, logging.getLevelName(level).lower(), fields)
            self._logger.log(level, text, exc_info=exc_info)
            return
        extra = (
            {"structured_kv": {k: _truncate(v, self._max_value_length) for k, v in fields.items()}}
            if fields
            else {}
        )
        self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback attached."""
        self._log(logging.ERROR, msg, kwargs, exc_info=True)
