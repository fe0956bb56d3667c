from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...schedules.model import Schedule
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Clock-in after the scheduled start plus grace."""

    def decide_checkin(self, *, now: datetime, schedule: Optional[Schedule], grace_minutes: int) -> StatusDecision:
        if schedule is None:
            return StatusDecision(status=AttendanceStatus.LATE)
        shift_start = datetime.combine(now.date(), schedule.shift.starts_at)
        late_by = int((now - shift_start).total_seconds() // 60)
        return StatusDecision(
            status=AttendanceStatus.LATE,
            note=f"Late by {late_by} min (shift starts {schedule.shift.start_time})",
        )
