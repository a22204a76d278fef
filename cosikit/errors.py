"""Errors that carry a machine-readable code."""

from __future__ import annotations

import enum


class ErrorCode(enum.Enum):
    """Kinds of coded errors."""

    NOT_EXIST = 0


class CodeError(Exception):
    """An error with a code and a message."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.message


def new_resource_not_exist_err(msg: str) -> CodeError:
    """Return an error saying that a resource does not exist."""
    return CodeError(ErrorCode.NOT_EXIST, msg)


def is_resource_not_exist_err(err: BaseException | None) -> bool:
    """Tell whether ``err``, or an error it was raised from, is a not-exist error."""
    seen: set[int] = set()
    current = err
    while current is not None and id(current) not in seen:
        if isinstance(current, CodeError):
            return current.code is ErrorCode.NOT_EXIST
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False