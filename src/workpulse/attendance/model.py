from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, BreakType, CheckMethod


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class Punch:
    """One clock-in or clock-out event."""

    time: datetime
    location: Optional[GeoPoint] = None
    method: CheckMethod = CheckMethod.WEB


@dataclass(frozen=True)
class Break:
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    type: BreakType = BreakType.OTHER

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class AttendanceRecord:
    id: Optional[int]
    user_id: int
    work_date: date
    check_in: Optional[Punch] = None
    check_out: Optional[Punch] = None
    breaks: tuple[Break, ...] = ()
    status: AttendanceStatus = AttendanceStatus.PRESENT
    schedule_id: Optional[int] = None
    work_hours: float = 0.0
    overtime: float = 0.0
    notes: Optional[str] = None
    is_manual_entry: bool = False
    manual_entry_reason: Optional[str] = None

    @property
    def open_break(self) -> Optional[Break]:
        for item in self.breaks:
            if item.is_open:
                return item
        return None
