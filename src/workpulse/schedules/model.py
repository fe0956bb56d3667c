from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Optional

from ..common.datetime_utils import parse_hhmm
from ..core.enums import RecurrenceType, ScheduleStatus, ShiftType, SwapStatus

ACTIVE_STATUSES = (ScheduleStatus.SCHEDULED, ScheduleStatus.IN_PROGRESS)


@dataclass(frozen=True)
class ShiftWindow:
    type: ShiftType
    start_time: str
    end_time: str
    break_duration: int = 30

    @property
    def starts_at(self) -> time:
        return parse_hhmm(self.start_time)

    @property
    def duration_hours(self) -> float:
        """Paid hours of the shift; an end before the start rolls into the next day."""
        start = self.starts_at
        end = parse_hhmm(self.end_time)
        start_minutes = start.hour * 60 + start.minute
        end_minutes = end.hour * 60 + end.minute
        if end_minutes < start_minutes:
            end_minutes += 24 * 60
        return (end_minutes - start_minutes - (self.break_duration or 0)) / 60


@dataclass(frozen=True)
class Location:
    building: Optional[str] = None
    floor: Optional[str] = None
    unit: Optional[str] = None
    room: Optional[str] = None


@dataclass(frozen=True)
class RecurringPattern:
    type: RecurrenceType
    end_date: Optional[date] = None
    days_of_week: tuple[int, ...] = ()
    day_of_month: Optional[int] = None


@dataclass(frozen=True)
class Modification:
    modified_at: datetime
    modified_by: int
    changes: dict[str, Any]
    reason: str = "Manual update"


@dataclass(frozen=True)
class SwapRequest:
    requested_by: int
    requested_with: int
    status: SwapStatus = SwapStatus.PENDING
    reason: Optional[str] = None
    approved_by: Optional[int] = None


@dataclass(frozen=True)
class Schedule:
    id: Optional[int]
    employee_id: int
    work_date: date
    shift: ShiftWindow
    department: str
    created_by: int
    location: Location = field(default_factory=Location)
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    modified_by: Optional[int] = None
    modification_history: tuple[Modification, ...] = ()
    notes: Optional[str] = None
    is_cancelled: bool = False
    cancellation_reason: Optional[str] = None
    swap_request: Optional[SwapRequest] = None
    overtime_hours: float = 0.0

    @property
    def is_active(self) -> bool:
        """Counts against the one-active-schedule-per-day rule."""
        return self.status in ACTIVE_STATUSES and not self.is_cancelled

    @property
    def shift_duration(self) -> float:
        return self.shift.duration_hours
