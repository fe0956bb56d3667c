from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from .model import SalaryRecord


class SalaryRepository(Protocol):
    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def get_for_period(self, employee_id: int, month: str, year: int) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def create(self, record: SalaryRecord) -> int:
        """Insert; a second record for the same (employee, month, year) raises ConflictError."""
        raise NotImplementedError

    def update(self, record: SalaryRecord) -> bool:
        raise NotImplementedError

    def delete(self, salary_id: int) -> bool:
        raise NotImplementedError

    def list_salaries(
        self,
        *,
        page: PageRequest,
        month: Optional[str] = None,
        year: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Page[SalaryRecord]:
        raise NotImplementedError

    def list_matching(self, *, month: Optional[str] = None, year: Optional[int] = None) -> Sequence[SalaryRecord]:
        raise NotImplementedError
