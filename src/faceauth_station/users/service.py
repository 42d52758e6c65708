from __future__ import annotations

import logging

from ..core.exceptions import NotFoundError
from .repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Use case: browse and remove registered users (history screen)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_admin_view(self) -> list[dict]:
        return [u.to_dict(include_image=False) for u in self._users.list_users()]

    def delete_user(self, user_id: str) -> None:
        if not self._users.delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info("Deleted user %s", user_id)
