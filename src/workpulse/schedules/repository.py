from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from .model import Modification, Schedule


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        raise NotImplementedError

    def find_active(self, *, employee_id: int, work_date: date, exclude_id: Optional[int] = None) -> Optional[Schedule]:
        """The active (scheduled/in-progress, not cancelled) schedule of an employee that day."""
        raise NotImplementedError

    def create(self, schedule: Schedule) -> int:
        raise NotImplementedError

    def update(self, schedule: Schedule, *, modification: Optional[Modification] = None) -> bool:
        raise NotImplementedError

    def delete(self, schedule_id: int) -> bool:
        raise NotImplementedError

    def list_schedules(
        self,
        *,
        page: PageRequest,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        status: Optional[str] = None,
        shift_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page[Schedule]:
        raise NotImplementedError

    def list_between(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[Schedule]:
        raise NotImplementedError
