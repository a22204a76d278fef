"""Logging formatter and handlers writing to the console or a rotated file."""

from __future__ import annotations

import logging
import os
import re
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
BACKUP_TIME_FORMAT = "%Y%m%d-%H%M%S"
DEFAULT_FILE_SIZE = 1024 * 1024 * 20
DEFAULT_MAX_BACKUPS = 9

LOG_FILE_PERMISSION = 0o640
LOG_DIR_PERMISSION = 0o750
ROTATED_LOG_FILE_PERMISSION = 0o440

_BACKUP_SUFFIX = re.compile(r"\d{8}-\d{6}")
_INTEGER = re.compile(r"[+-]?\d+")

_LEVEL_PREFIXES = {
    logging.DEBUG: "[DEBUG]: ",
    logging.INFO: "[INFO]: ",
    logging.WARNING: "[WARNING]: ",
    logging.ERROR: "[ERROR]: ",
    logging.CRITICAL: "[FATAL]: ",
}

_STDOUT_LEVELS = frozenset({logging.DEBUG, logging.INFO, logging.WARNING})
_STDERR_LEVELS = frozenset({logging.ERROR, logging.CRITICAL})

_log = logging.getLogger(__name__)


class PlainTextFormatter(logging.Formatter):
    """Formats records as ``<time> <pid>[key:value] <LEVEL>: <message>``.

    Extra fields are read from a ``fields`` mapping on the record.
    """

    def __init__(self, timestamp_format: str = TIMESTAMP_FORMAT, pid: int | None = None) -> None:
        super().__init__()
        self.timestamp_format = timestamp_format
        self.pid = os.getpid() if pid is None else pid

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime(self.timestamp_format)
        fields: dict[str, Any] = getattr(record, "fields", None) or {}
        parts = [f"{timestamp} {self.pid}"]
        parts.extend(f"[{key}:{value}] " for key, value in fields.items())
        prefix = _LEVEL_PREFIXES.get(record.levelno, "[UNKNOWN]: ")
        parts.append(f"{prefix} {record.getMessage()}\n")
        return "".join(parts)


class ConsoleHandler(logging.Handler):
    """Writes debug, info and warning records to stdout, error and fatal to stderr."""

    def __init__(self, formatter: logging.Formatter) -> None:
        super().__init__()
        self.setFormatter(formatter)

    @staticmethod
    def _stream_for(levelno: int) -> TextIO:
        if levelno in _STDOUT_LEVELS:
            return sys.stdout
        if levelno in _STDERR_LEVELS:
            return sys.stderr
        raise ValueError(f"unknown log level: {logging.getLevelName(levelno)}")

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stream = self._stream_for(record.levelno)
            stream.write(self.format(record))
            stream.flush()
        except Exception:
            self.handleError(record)


class FileHandler(logging.Handler):
    """Appends records to a file and rotates it once it reaches a size."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        formatter: logging.Formatter,
        max_size: int | str = DEFAULT_FILE_SIZE,
        max_backups: int = DEFAULT_MAX_BACKUPS,
    ) -> None:
        super().__init__()
        self.path = Path(path)
        directory = self.path.parent
        if not directory.exists() and not directory.is_symlink():
            try:
                directory.mkdir(mode=LOG_DIR_PERMISSION, parents=True, exist_ok=True)
            except OSError as exc:
                raise OSError(f"could not create log directory {directory}. {exc}") from exc
        elif not directory.is_dir():
            raise NotADirectoryError(
                f"log path {directory} exists and is not a directory, please remove it"
            )

        if isinstance(max_size, str):
            try:
                max_size = parse_size(max_size)
            except ValueError as exc:
                raise ValueError(
                    f"error in evaluating max log file size: {exc}. Check 'logFileSize' flag"
                ) from exc
        if max_backups < 0:
            raise ValueError(f"max backups must not be negative, got [{max_backups}]")

        self.max_size = max_size
        self.max_backups = max_backups
        self._rotate_lock = threading.Lock()
        self.setFormatter(formatter)

    def _write(self, text: str) -> None:
        try:
            fd = os.open(
                self.path, os.O_CREAT | os.O_APPEND | os.O_RDWR, LOG_FILE_PERMISSION
            )
        except OSError as exc:
            raise OSError(f"failed to open log file with error [{exc}]") from exc
        with os.fdopen(fd, "a", encoding="utf-8") as file:
            file.write(text)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            self._write(line)
            if self.needs_rotation():
                with self._rotate_lock:
                    if self.needs_rotation():
                        self.rotate()
        except Exception:
            self.handleError(record)

    def needs_rotation(self) -> bool:
        """Tell whether the file has reached the rotation size."""
        try:
            return self.path.stat().st_size >= self.max_size
        except OSError:
            return False

    def rotate(self) -> None:
        """Move the file aside with a timestamp suffix and drop old backups."""
        rotated = self.path.with_name(
            self.path.name + datetime.now().strftime(BACKUP_TIME_FORMAT)
        )
        try:
            os.replace(self.path, rotated)
        except OSError as exc:
            raise OSError(f"failed to create backup file. {exc}") from exc
        try:
            os.chmod(rotated, ROTATED_LOG_FILE_PERMISSION)
        except OSError as exc:
            raise OSError(f"failed to chmod backup file. {exc}") from exc

        for old in sorted_backup_log_files(self.path)[self.max_backups:]:
            try:
                old.unlink()
            except OSError as exc:
                raise OSError(f"failed to remove old backup file [{old.name}]. {exc}") from exc


def parse_size(value: str) -> int:
    """Parse a size such as ``100``, ``100K`` or ``100M`` into bytes.

    A trailing letter other than K or M is dropped without scaling.
    """
    text = value.upper()
    if not text:
        raise ValueError("empty size")
    last = text[-1]
    digits = text if last.isdigit() and last.isascii() else text[:-1]
    if not _INTEGER.fullmatch(digits):
        raise ValueError(f"invalid size [{value}]")
    size = int(digits)
    if last == "M":
        size *= 1024 * 1024
    elif last == "K":
        size *= 1024
    return size


def sorted_backup_log_files(file_path: str | os.PathLike[str]) -> list[Path]:
    """Return the rotated backups of ``file_path``, newest first."""
    path = Path(file_path)
    base = path.name
    try:
        entries = list(os.scandir(path.parent))
    except OSError as exc:
        raise OSError(f"can't read log file directory: {exc}") from exc

    backups: list[tuple[datetime, Path]] = []
    for entry in entries:
        if entry.is_dir():
            continue
        name = entry.name
        if not name.startswith(base) or name == base:
            continue
        suffix = name[len(base):]
        try:
            if not _BACKUP_SUFFIX.fullmatch(suffix):
                raise ValueError(f"suffix [{suffix}] does not match {BACKUP_TIME_FORMAT}")
            timestamp = datetime.strptime(suffix, BACKUP_TIME_FORMAT)
        except ValueError as exc:
            _log.warning("Failed parsing log file suffix timestamp. %s", exc)
            continue
        backups.append((timestamp, path.parent / name))

    backups.sort(key=lambda item: item[0], reverse=True)
    return [backup for _, backup in backups]