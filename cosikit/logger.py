"""Process-wide logger with request ids carried between services."""

from __future__ import annotations

import contextvars
import logging
import os
import secrets
from collections.abc import Mapping, Sequence
from typing import Any

from .log_handlers import (
    DEFAULT_FILE_SIZE,
    DEFAULT_MAX_BACKUPS,
    TIMESTAMP_FORMAT,
    ConsoleHandler,
    FileHandler,
    PlainTextFormatter,
)

DEFAULT_LOG_DIR = "/var/log/huawei-cosi"
CHAIN_REQUEST_ID_KEY = "cosi-chain-requestid"
REQUEST_ID_FIELD = "requestID"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cosi_request_id", default=None
)


class _FieldLogger(logging.LoggerAdapter):
    """A logger that attaches a fixed set of fields to every record."""

    def __init__(self, logger: logging.Logger, fields: Mapping[str, Any] | None = None) -> None:
        super().__init__(logger, {})
        self.fields: dict[str, Any] = dict(fields or {})

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra["fields"] = dict(self.fields)
        kwargs["extra"] = extra
        return msg, kwargs

    def add_field(self, field: str, value: Any) -> _FieldLogger:
        """Return a logger that also carries ``field``."""
        return _FieldLogger(self.logger, {**self.fields, field: value})

    def add_context(self) -> _FieldLogger:
        """Return a logger carrying the current request id, if there is one."""
        request_id = _request_id.get()
        if request_id is None:
            return self
        return self.add_field(REQUEST_ID_FIELD, request_id)

    def fatal(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        """Log at fatal level and exit with status 1."""
        self.critical(msg, *args, **kwargs)
        raise SystemExit(1)


def parse_log_level(level: str) -> int:
    """Map a level name (debug, info, warning, error, fatal) to a logging level."""
    try:
        return _LEVELS[level]
    except KeyError:
        raise ValueError(f"invalid logging level [{level}]") from None


def _build(
    log_name: str,
    log_module: str,
    log_level: str,
    log_file_dir: str,
    log_file_size: str,
    max_backups: int,
) -> _FieldLogger:
    level = parse_log_level(log_level)
    formatter = PlainTextFormatter(TIMESTAMP_FORMAT, os.getpid())

    if log_module == "file":
        path = f"{log_file_dir}/{log_name}"
        try:
            handler: logging.Handler = FileHandler(path, formatter, log_file_size, max_backups)
        except OSError as exc:
            raise OSError(f"could not initialize logging to file: {exc}") from exc
        except ValueError as exc:
            raise ValueError(f"could not initialize logging to file: {exc}") from exc
    elif log_module == "console":
        handler = ConsoleHandler(formatter)
    else:
        raise ValueError(
            f"invalid logging module [{log_module}]. Support only 'file' or 'console'"
        )

    base = logging.Logger(f"cosikit.{log_name}", level)
    base.propagate = False
    base.addHandler(handler)
    return _FieldLogger(base)


_current = _build(
    "dummy-name", "console", "info", DEFAULT_LOG_DIR, str(DEFAULT_FILE_SIZE), DEFAULT_MAX_BACKUPS
)


def init_logging(
    log_name: str,
    log_module: str = "file",
    log_level: str = "info",
    log_file_dir: str = DEFAULT_LOG_DIR,
    log_file_size: str = str(DEFAULT_FILE_SIZE),
    max_backups: int = DEFAULT_MAX_BACKUPS,
) -> None:
    """Configure the process logger to write to a file or to stdout/stderr."""
    global _current
    new_logger = _build(log_name, log_module, log_level, log_file_dir, log_file_size, max_backups)
    old = _current
    _current = new_logger
    for handler in list(old.logger.handlers):
        old.logger.removeHandler(handler)
        handler.close()


def get_logger() -> _FieldLogger:
    """Return the process logger."""
    return _current


def add_field(field: str, value: Any) -> _FieldLogger:
    """Return the process logger with ``field`` attached."""
    return _current.add_field(field, value)


def add_context() -> _FieldLogger:
    """Return the process logger with the current request id attached."""
    return _current.add_context()


def get_request_id() -> str | None:
    """Return the request id of the current context, or None."""
    return _request_id.get()


def _is_prime(n: int) -> bool:
    if n < 2:
        return False
    for small in (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37):
        if n % small == 0:
            return n == small
    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1
    # These bases decide primality for every n below 2**32.
    for base in (2, 7, 61):
        x = pow(base, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = x * x % n
            if x == n - 1:
                break
        else:
            return False
    return True


def _random_prime32() -> int:
    while True:
        candidate = secrets.randbits(32) | 0xC0000001
        if _is_prime(candidate):
            return candidate


def set_request_info(
    metadata: Mapping[str, Sequence[str]] | None = None,
) -> dict[str, list[str]]:
    """Generate a request id, make it current and return outgoing metadata carrying it."""
    outgoing = {key: list(values) for key, values in (metadata or {}).items()}
    request_id = str(_random_prime32())
    outgoing.setdefault(CHAIN_REQUEST_ID_KEY, []).append(request_id)
    _request_id.set(request_id)
    return outgoing


def handle_request_id(
    metadata: Mapping[str, Sequence[str]] | None,
) -> dict[str, list[str]]:
    """Adopt the request id from incoming metadata, or generate one.

    Returns the outgoing metadata that passes the id on to the next service.
    """
    if metadata is None:
        debug("ctx not include metadata info, generate a new ctx with metadata and value")
        return set_request_info()

    request_ids = metadata.get(CHAIN_REQUEST_ID_KEY)
    if request_ids is not None and len(request_ids) == 1:
        request_id = request_ids[0]
        _request_id.set(request_id)
        return {CHAIN_REQUEST_ID_KEY: [request_id]}

    debug("ctx metadata not include requestId info, generate a new ctx with metadata and value")
    return set_request_info()


def debug(msg: str, *args: Any) -> None:
    """Log a debug message."""
    _current.debug(msg, *args)


def info(msg: str, *args: Any) -> None:
    """Log an info message."""
    _current.info(msg, *args)


def warning(msg: str, *args: Any) -> None:
    """Log a warning message."""
    _current.warning(msg, *args)


def error(msg: str, *args: Any) -> None:
    """Log an error message."""
    _current.error(msg, *args)


def fatal(msg: str, *args: Any) -> None:
    """Log a fatal message and exit with status 1."""
    _current.fatal(msg, *args)