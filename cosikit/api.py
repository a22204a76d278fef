"""The user management interface and its request and response types."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field


@dataclass
class CreateUserInput:
    """Input of create_user."""

    user_name: str = ""


@dataclass
class CreateUserOutput:
    """Output of create_user."""

    user_name: str = ""
    user_id: str = ""
    arn: str = ""


@dataclass
class GetUserInput:
    """Input of get_user."""

    user_name: str = ""


@dataclass
class GetUserOutput:
    """Output of get_user."""

    user_name: str = ""
    user_id: str = ""
    arn: str = ""


@dataclass
class DeleteUserInput:
    """Input of delete_user."""

    user_name: str = ""


@dataclass
class DeleteUserOutput:
    """Output of delete_user; carries no data."""


@dataclass
class CreateUserAccessInput:
    """Input of create_user_access."""

    user_name: str = ""


@dataclass
class CreateUserAccessOutput:
    """Output of create_user_access."""

    access_key_id: str = ""
    secret_access_key: str = ""


@dataclass
class DeleteUserAccessInput:
    """Input of delete_user_access."""

    user_name: str = ""
    access_key_id: str = ""


@dataclass
class DeleteUserAccessOutput:
    """Output of delete_user_access; carries no data."""


@dataclass
class ListUserAccessKeysInput:
    """Input of list_user_access_keys."""

    user_name: str = ""


@dataclass
class ListUserAccessKeysOutput:
    """Output of list_user_access_keys."""

    access_keys: list[str] = field(default_factory=list)


class UserAPI(abc.ABC):
    """Operations on users and their access keys."""

    @abc.abstractmethod
    def create_user(self, user_input: CreateUserInput) -> CreateUserOutput:
        """Create a user."""

    @abc.abstractmethod
    def get_user(self, user_input: GetUserInput) -> GetUserOutput | None:
        """Fetch a user, or None if it does not exist."""

    @abc.abstractmethod
    def delete_user(self, user_input: DeleteUserInput) -> DeleteUserOutput:
        """Delete a user."""

    @abc.abstractmethod
    def create_user_access(
        self, user_input: CreateUserAccessInput
    ) -> CreateUserAccessOutput:
        """Create an access key for a user."""

    @abc.abstractmethod
    def delete_user_access(
        self, user_input: DeleteUserAccessInput
    ) -> DeleteUserAccessOutput:
        """Delete one access key of a user."""

    @abc.abstractmethod
    def list_user_access_keys(
        self, user_input: ListUserAccessKeysInput
    ) -> ListUserAccessKeysOutput:
        """List the access key ids of a user."""