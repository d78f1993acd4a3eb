"""Structured logging for document and entry assembly.

Library modules log through :func:`get_logger`. The returned adapter wraps a
logger that carries only a ``NullHandler``, so nothing is printed until the
application installs a handler with :func:`setup_logging`. Every record is
tagged with an ``operation`` and a ``status``, and with the correlation id of
the surrounding edit session when one is active.

Examples
--------
>>> from fog_human_json.logging import CorrelationContext, get_logger
>>> logger = get_logger("fog_human_json.example")
>>> with CorrelationContext("edit-7"):
...     logger.debug("Document assembled", extra={"operation": "json_to_doc"})
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
from typing import IO, TYPE_CHECKING, Any, Final, Self

if TYPE_CHECKING:
    from collections.abc import MutableMapping

__all__ = [
    "CorrelationContext",
    "JsonFormatter",
    "LoggerAdapter",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
    "setup_logging",
]

_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "fog_json_correlation_id", default=None
)

# Anything on a record outside this set arrived through ``extra``.
_BUILTIN_ATTRS: Final[frozenset[str]] = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}

_TEXT_FORMAT: Final = "%(asctime)s %(levelname)-8s %(name)s [%(operation)s] %(message)s"

# Marks the handler installed by setup_logging so a second call replaces it.
_INSTALLED_FLAG: Final = "_fog_json_handler"


def _status_for(level: int) -> str:
    if level >= logging.ERROR:
        return "error"
    if level >= logging.WARNING:
        return "warning"
    return "success"


def _structured_fields(record: logging.LogRecord) -> dict[str, object]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _BUILTIN_ATTRS
        and not key.startswith("_")
        and isinstance(value, (str, int, float, bool, list, dict))
    }


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    The header keys ``ts`` (UTC, millisecond precision), ``level``, ``logger``
    and ``message`` come first, followed by the record's structured extras.
    Extras that are not plain JSON scalars, lists or dicts are left out. A
    record without its own ``correlation_id`` picks up the active one.
    """

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        stamp = self.formatTime(record, "%Y-%m-%dT%H:%M:%S")
        payload: dict[str, object] = {
            "ts": f"{stamp}.{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_structured_fields(record))
        session = _session_id.get()
        if session is not None:
            payload.setdefault("correlation_id", session)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class LoggerAdapter(logging.LoggerAdapter[logging.Logger]):
    """Adapter that tags records with ``operation``, ``status`` and ``correlation_id``.

    Fields bound when the adapter is built apply to every record unless a call
    passes its own value in ``extra``. A missing ``operation`` becomes
    ``"unknown"``; a missing ``status`` follows the level: ``"success"`` below
    WARNING, ``"warning"`` below ERROR and ``"error"`` from there up.

    Examples
    --------
    >>> import logging
    >>> base = logging.getLogger("fog_human_json.x")
    >>> adapter = LoggerAdapter(base, {"operation": "import"})
    >>> adapter.info("Imported", extra={"hash": "..."})
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        fields: dict[str, Any] = dict(self.extra or {})
        fields.update(kwargs.get("extra") or {})
        fields.setdefault("operation", "unknown")
        session = _session_id.get()
        if session is not None:
            fields.setdefault("correlation_id", session)
        kwargs["extra"] = fields
        return msg, kwargs

    def log(self, level: int, msg: object, *args: object, **kwargs: Any) -> None:
        # The stdlib level helpers (debug, warning, exception...) all route here.
        if not self.isEnabledFor(level):
            return
        msg, kwargs = self.process(msg, kwargs)
        kwargs["extra"].setdefault("status", _status_for(level))
        self.logger.log(level, msg, *args, **kwargs)


def get_logger(name: str, **fields: Any) -> LoggerAdapter:
    """Return a structured adapter for the logger ``name``.

    Parameters
    ----------
    name : str
        Logger name, normally the calling module's ``__name__``.
    **fields : Any
        Fields bound to every record the adapter emits.

    Returns
    -------
    LoggerAdapter
        Adapter over a logger that has a ``NullHandler`` attached.
    """
    base = logging.getLogger(name)
    if not any(isinstance(handler, logging.NullHandler) for handler in base.handlers):
        base.addHandler(logging.NullHandler())
    return LoggerAdapter(base, fields)


def setup_logging(
    level: int | str = logging.INFO,
    *,
    json_logs: bool = True,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach a stream handler to the root logger.

    Calling this again swaps out the handler a previous call installed and
    leaves every other root handler alone.

    Parameters
    ----------
    level : int | str, optional
        Root threshold as a number or level name. Defaults to INFO.
    json_logs : bool, optional
        Use :class:`JsonFormatter` when True, a one-line text format otherwise.
    stream : IO[str] | None, optional
        Destination; standard output when omitted.

    Returns
    -------
    logging.Handler
        The installed handler, for callers that want to detach it later.
    """
    root = logging.getLogger()
    for previous in [h for h in root.handlers if getattr(h, _INSTALLED_FLAG, False)]:
        root.removeHandler(previous)
        previous.close()
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, defaults={"operation": "-"}))
    setattr(handler, _INSTALLED_FLAG, True)
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    return handler


def set_correlation_id(correlation_id: str | None) -> None:
    """Make ``correlation_id`` current for this context; None clears it."""
    _session_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _session_id.get()


class CorrelationContext:
    """Scope a correlation id, such as one editing session, over a block.

    On exit the id that was current before entry is back in place, so scopes
    nest.
    """

    __slots__ = ("_token", "correlation_id")

    def __init__(self, correlation_id: str | None) -> None:
        self.correlation_id = correlation_id
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> Self:
        self._token = _session_id.set(self.correlation_id)
        return self

    def __exit__(self, *exc_info: object) -> None:
        token, self._token = self._token, None
        if token is not None:
            _session_id.reset(token)
