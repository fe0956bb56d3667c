from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from ..common.datetime_utils import minutes_between
from ..core.constants import STANDARD_WORK_MINUTES
from .model import AttendanceRecord, Break


def completed_break_minutes(breaks: Iterable[Break]) -> float:
    return sum(minutes_between(b.start_time, b.end_time) for b in breaks if b.end_time is not None)


def derive_work_hours(record: AttendanceRecord) -> AttendanceRecord:
    """Recompute work_hours/overtime (minutes) from the punches and closed breaks.

    Records without both punches are returned unchanged. Work time never
    goes below zero; overtime is whatever exceeds a standard 8h day.
    """
    if record.check_in is None or record.check_out is None:
        return record

    total = minutes_between(record.check_in.time, record.check_out.time)
    total -= completed_break_minutes(record.breaks)
    work_minutes = max(0.0, total)
    return replace(
        record,
        work_hours=work_minutes,
        overtime=max(0.0, work_minutes - STANDARD_WORK_MINUTES),
    )
