"""User operations against an IAM-style storage backend speaking XML."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from typing import TypeVar

from . import logger as log
from .api import (
    CreateUserInput,
    CreateUserOutput,
    DeleteUserInput,
    DeleteUserOutput,
    GetUserInput,
    GetUserOutput,
)

ACTION_KEY = "Action"
USER_NAME_KEY = "UserName"

CREATE_USER_ACTION = "CreateUser"
GET_USER_ACTION = "GetUser"
DELETE_USER_ACTION = "DeleteUser"

ERR_NO_SUCH_USER = "NoSuchEntity"
ERR_NO_SUCH_USER_ACCESS = "NoSuchEntity"

Call = Callable[[Mapping[str, str]], bytes]


class ErrorResponse(Exception):
    """An error reported by the backend in an ``ErrorResponse`` document."""

    def __init__(self, code: str = "", message: str = "", request_id: str = "") -> None:
        super().__init__(code, message, request_id)
        self.code = code
        self.message = message
        self.request_id = request_id

    def __str__(self) -> str:
        return (
            f"error Response: code is [{self.code}], msg is [{self.message}], "
            f"requestId is [{self.request_id}]"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ErrorResponse):
            return NotImplemented
        return (self.code, self.message, self.request_id) == (
            other.code,
            other.message,
            other.request_id,
        )

    def __hash__(self) -> int:
        return hash((self.code, self.message, self.request_id))

    def is_reason(self, reason: str) -> bool:
        """Tell whether the backend reported ``reason`` as the error code."""
        return self.code == reason


@dataclass
class UserRecord:
    """A user as described by the backend."""

    user_name: str = ""
    path: str = ""
    user_id: str = ""
    arn: str = ""
    create_date: str = ""


@dataclass
class AccessKeyRecord:
    """A newly created access key, secret included."""

    account_id: str = ""
    access_key_id: str = ""
    status: str = ""
    secret_access_key: str = ""
    create_date: str = ""
    user_name: str = ""


@dataclass
class AccessKeyMember:
    """One entry of a user's access key listing."""

    account_id: str = ""
    access_key_id: str = ""
    status: str = ""
    create_date: str = ""
    user_name: str = ""


_R = TypeVar("_R")


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_root(body: bytes, expected: str) -> ET.Element:
    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise ValueError(f"XML syntax error: {exc}") from exc
    name = _local(root.tag)
    if name != expected:
        raise ValueError(f"expected element type <{expected}> but have <{name}>")
    return root


def _child(element: ET.Element | None, name: str) -> ET.Element | None:
    if element is None:
        return None
    return next((child for child in element if _local(child.tag) == name), None)


def _text(element: ET.Element | None, name: str) -> str:
    found = _child(element, name)
    if found is None:
        return ""
    return (found.text or "") + "".join(child.tail or "" for child in found)


def _tag_for(field_name: str) -> str:
    return "".join(part.capitalize() for part in field_name.split("_"))


def _record(cls: type[_R], element: ET.Element | None) -> _R:
    """Fill a record dataclass from the child elements named after its fields."""
    values = {f.name: _text(element, _tag_for(f.name)) for f in fields(cls)}
    return cls(**values)


def _request_id(root: ET.Element) -> str:
    return _text(_child(root, "ResponseMetadata"), "RequestId")


def handle_error_response(err_body: bytes) -> ErrorResponse:
    """Parse an error document into an ErrorResponse.

    Raises ValueError when the body is not an error document.
    """
    try:
        root = _parse_root(err_body, "ErrorResponse")
    except ValueError as exc:
        text = err_body.decode("utf-8", errors="replace")
        raise ValueError(
            "failed to unmarshal poe http error response, "
            f"unmarshal error is [{exc}], errBody is [{text}]"
        ) from exc
    error = _child(root, "Error")
    return ErrorResponse(
        code=_text(error, "Code"),
        message=_text(error, "Message"),
        request_id=_text(root, "RequestId"),
    )


def parse_create_user_response(body: bytes) -> tuple[UserRecord, str]:
    """Return the created user and the request id."""
    root = _parse_root(body, "CreateUserResponse")
    user = _record(UserRecord, _child(_child(root, "CreateUserResult"), "User"))
    return user, _request_id(root)


def parse_get_user_response(body: bytes) -> tuple[UserRecord, str]:
    """Return the fetched user and the request id."""
    root = _parse_root(body, "GetUserResponse")
    user = _record(UserRecord, _child(_child(root, "GetUserResult"), "User"))
    return user, _request_id(root)


def parse_delete_user_response(body: bytes) -> str:
    """Return the request id of a delete-user response."""
    return _request_id(_parse_root(body, "DeleteUserResponse"))


def parse_create_access_key_response(body: bytes) -> tuple[AccessKeyRecord, str]:
    """Return the created access key and the request id."""
    root = _parse_root(body, "CreateAccessKeyResponse")
    key = _child(_child(root, "CreateAccessKeyResult"), "AccessKey")
    return _record(AccessKeyRecord, key), _request_id(root)


def parse_delete_access_key_response(body: bytes) -> str:
    """Return the request id of a delete-access-key response."""
    return _request_id(_parse_root(body, "DeleteAccessKeyResponse"))


def parse_list_access_keys_response(body: bytes) -> tuple[list[AccessKeyMember], str]:
    """Return the listed access keys, in document order, and the request id."""
    root = _parse_root(body, "ListAccessKeysResponse")
    metadata = _child(_child(root, "ListAccessKeysResult"), "AccessKeyMetadata")
    members = [
        _record(AccessKeyMember, member)
        for member in (metadata if metadata is not None else [])
        if _local(member.tag) == "member"
    ]
    return members, _request_id(root)


def _has_reason(err: BaseException | None, reason: str) -> bool:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, ErrorResponse) and err.is_reason(reason):
            return True
        seen.add(id(err))
        err = err.__cause__ or err.__context__
    return False


def create_user(call: Call, user_input: CreateUserInput) -> CreateUserOutput:
    """Create a user through ``call`` and return what the backend reports."""
    log.add_context().info("start to create user, input is [%s]", user_input)
    body = call({ACTION_KEY: CREATE_USER_ACTION, USER_NAME_KEY: user_input.user_name})
    user, request_id = parse_create_user_response(body)
    log.add_context().info("create user success, storage request id is [%s]", request_id)
    return CreateUserOutput(user_name=user.user_name, user_id=user.user_id, arn=user.arn)


def get_user(call: Call, user_input: GetUserInput) -> GetUserOutput | None:
    """Fetch a user through ``call``; return None if it does not exist."""
    log.add_context().info("start to get user, input is [%s]", user_input)
    try:
        body = call({ACTION_KEY: GET_USER_ACTION, USER_NAME_KEY: user_input.user_name})
    except Exception as exc:
        if _has_reason(exc, ERR_NO_SUCH_USER):
            log.add_context().info("user [%s] not exist", user_input.user_name)
            return None
        raise
    user, request_id = parse_get_user_response(body)
    log.add_context().info("get user success, storage request id is [%s]", request_id)
    return GetUserOutput(user_name=user.user_name, user_id=user.user_id, arn=user.arn)


def delete_user(call: Call, user_input: DeleteUserInput) -> DeleteUserOutput:
    """Delete a user through ``call``; a missing user counts as deleted."""
    log.add_context().info("start to delete user, input is [%s]", user_input)
    try:
        body = call({ACTION_KEY: DELETE_USER_ACTION, USER_NAME_KEY: user_input.user_name})
    except Exception as exc:
        if _has_reason(exc, ERR_NO_SUCH_USER):
            log.add_context().info("user [%s] is not exist", user_input.user_name)
            return DeleteUserOutput()
        raise
    request_id = parse_delete_user_response(body)
    log.add_context().info("delete user success, storage request id is [%s]", request_id)
    return DeleteUserOutput()