from datetime import date

from workpulse.core.enums import LeaveType
from workpulse.leaves.balance import adjust, default_entries, merge_entries, recompute_available
from workpulse.leaves.model import LeaveBalance, LeaveBalanceEntry, LeavePolicy


def _balance(*entries):
    return LeaveBalance(id=1, employee_id=1, year=2026, entries=tuple(entries))


def test_available_is_allocated_plus_carried_minus_used_and_pending():
    balance = recompute_available(
        _balance(LeaveBalanceEntry(type=LeaveType.ANNUAL, allocated=21, carried_forward=4, used=6, pending=2.5))
    )
    assert balance.entry(LeaveType.ANNUAL).available == 16.5


def test_adjust_moves_pending_to_used_and_recomputes():
    balance = recompute_available(_balance(LeaveBalanceEntry(type=LeaveType.SICK, allocated=14, pending=3)))

    moved = adjust(balance, LeaveType.SICK, pending=-3, used=3)

    entry = moved.entry(LeaveType.SICK)
    assert (entry.pending, entry.used, entry.available) == (0, 3, 11)


def test_adjust_untracked_type_returns_none():
    assert adjust(_balance(), LeaveType.UNPAID, pending=1) is None


def test_first_year_annual_allocation_is_prorated():
    entries = default_entries(joining_date=date(2026, 1, 1), today=date(2026, 7, 2))
    by_type = {e.type: e for e in entries}

    assert by_type[LeaveType.ANNUAL].allocated == 10
    assert by_type[LeaveType.SICK].allocated == 14
    assert by_type[LeaveType.MATERNITY].allocated == 90


def test_active_policy_overrides_default_allocation():
    policy = LeavePolicy(
        id=1, type=LeaveType.CASUAL, name="Casual", description="d",
        annual_allocation=10, max_consecutive_days=3, created_by=1,
    )
    entries = default_entries(joining_date=date(2015, 1, 1), today=date(2026, 1, 1), policies=[policy])

    assert {e.type: e.allocated for e in entries}[LeaveType.CASUAL] == 10


def test_merge_updates_existing_and_appends_new_types():
    balance = _balance(LeaveBalanceEntry(type=LeaveType.ANNUAL, allocated=21))

    merged = merge_entries(balance, [{"type": "annual", "used": 2}, {"type": "study", "allocated": 5}])

    assert merged.entry(LeaveType.ANNUAL).available == 19
    assert merged.entry(LeaveType.STUDY).available == 5
