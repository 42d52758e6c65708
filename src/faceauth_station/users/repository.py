from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for the user registry.

    Note (DIP): workflows depend on this interface, not on a concrete backend.
    """

    def list_users(self) -> Sequence[User]:
        raise NotImplementedError

    def get_user(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def upsert_user(self, user: User) -> User:
        """Insert, or replace the user with the same ``employee_id``."""

        raise NotImplementedError

    def delete_user(self, user_id: str) -> bool:
        raise NotImplementedError
