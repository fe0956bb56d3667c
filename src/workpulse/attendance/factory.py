from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..schedules.model import Schedule
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, schedule: Optional[Schedule], grace_minutes: int) -> AttendanceStrategy:
        if not schedule:
            return PresentStrategy()

        shift_start = datetime.combine(now.date(), schedule.shift.starts_at)
        if now <= shift_start + timedelta(minutes=grace_minutes):
            return PresentStrategy()
        return LateStrategy()
