from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from .model import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_reset_token(self, token: str) -> Optional[User]:
        raise NotImplementedError

    def list_users(
        self,
        *,
        page: PageRequest,
        department: Optional[str] = None,
        role: Optional[str] = None,
        employment_status: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Page[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def find_ids(self, *, department: Optional[str] = None, search: Optional[str] = None) -> Sequence[int]:
        """Ids of users matching a department and/or a name/employee-id search."""
        raise NotImplementedError

    def max_employee_id_with_prefix(self, prefix: str) -> Optional[str]:
        raise NotImplementedError

    def create(self, user: User) -> int:
        raise NotImplementedError

    def update(self, user: User) -> bool:
        raise NotImplementedError

    def delete(self, user_id: int) -> bool:
        raise NotImplementedError
