from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_login(self, login: str) -> Optional[User]:
        raise NotImplementedError

    def list_all(self, role: Optional[Role] = None) -> Sequence[User]:
        """Newest users first."""

        raise NotImplementedError

    def create_user(
        self,
        *,
        login: str,
        password_hash: str,
        name: str,
        position: str,
        role: Role,
    ) -> User:
        raise NotImplementedError

    def update_user(
        self,
        *,
        user_id: int,
        login: str,
        name: str,
        position: str,
        role: Role,
        password_hash: Optional[str] = None,
    ) -> Optional[User]:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        """Deletes the user; rates and time tracks go with it (FK cascade)."""

        raise NotImplementedError
