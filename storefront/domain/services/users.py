"""User service capability set."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.cancellation import CancellationSignal
from storefront.domain.errors import InvalidRequestError
from storefront.domain.models.users import User


class UserService(ABC):
    """Operations callers may perform on users.

    Production code depends on this interface; the SQL implementation and
    any test double both subclass it.  Every operation takes an optional
    CancellationSignal.
    """

    @abstractmethod
    async def get_user_by_id(
        self, user_id: int, signal: CancellationSignal | None = None
    ) -> User | None:
        """Return the user with the given id, or None.  Absence is not an error."""

    @abstractmethod
    async def validate_credentials(
        self, username: str, password: str, signal: CancellationSignal | None = None
    ) -> bool:
        """Return True when a user with exactly this username and credential exists.

        ``password`` is compared as an opaque value; hashing and verification
        policy belong to the authentication layer.
        """

    @abstractmethod
    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        signal: CancellationSignal | None = None,
    ) -> User:
        """Insert a user and return it with the store-assigned id and timestamp."""


def validate_new_user(username: str, email: str, password: str) -> None:
    if not username:
        raise InvalidRequestError("Username is required")
    if not email:
        raise InvalidRequestError("Email is required")
    if not password:
        raise InvalidRequestError("Password is required")
