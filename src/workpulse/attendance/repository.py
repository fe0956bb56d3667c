from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> int:
        """Insert; a second record for the same (user, day) raises ConflictError."""
        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> bool:
        raise NotImplementedError

    def list_records(
        self,
        *,
        page: PageRequest,
        user_ids: Optional[Sequence[int]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> Page[AttendanceRecord]:
        raise NotImplementedError

    def list_between(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        user_ids: Optional[Sequence[int]] = None,
        status: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
