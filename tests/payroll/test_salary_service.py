from __future__ import annotations

from datetime import date, datetime

import pytest

from tests.conftest import make_user
from workpulse.core.enums import EmploymentStatus, LeaveStatus, LeaveType, Role, SalaryStatus
from workpulse.core.exceptions import AuthorizationError, ConflictError, ValidationError
from workpulse.leaves.model import LeaveRequest

PERIOD = {"month": "march", "year": 2026}


def _approved_leave(repos, employee, start, end):
    repos["leaves_repo"].create(
        LeaveRequest(
            id=None,
            employee_id=int(employee.id),
            type=LeaveType.ANNUAL,
            start_date=start,
            end_date=end,
            total_days=float((end - start).days + 1),
            reason="Travel",
            department=employee.department,
            applied_date=datetime(2026, 2, 1, 9, 0),
            status=LeaveStatus.APPROVED,
        )
    )


def test_five_approved_days_against_allowance_of_three(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=100000, monthly_leave_allowance=3)
    _approved_leave(repos, nurse, date(2026, 3, 9), date(2026, 3, 13))

    record = container.salary_service.calculate({"employeeId": nurse.id, **PERIOD})

    assert (record.attendance.paid_leave_days, record.attendance.no_pay_leave) == (3, 2)
    assert record.deductions.no_pay_days_deduction == 2000
    assert record.allowances.cost_of_living == 25000
    assert record.deductions.epf_employee == 8000
    assert record.employer_contributions.epf_employer == 12000
    assert record.employer_contributions.etf == 3000


def test_zero_leave_allowance_makes_every_day_unpaid(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=100000, monthly_leave_allowance=0)
    _approved_leave(repos, nurse, date(2026, 3, 9), date(2026, 3, 10))

    record = container.salary_service.calculate({"employeeId": nurse.id, **PERIOD})

    assert record.attendance.leave_allowed == 0
    assert (record.attendance.paid_leave_days, record.attendance.no_pay_leave) == (0, 2)
    assert record.attendance.excess_leave_days == 2
    assert record.deductions.no_pay_days_deduction == 2000


def test_calculate_clips_leave_to_the_month(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=100000)
    _approved_leave(repos, nurse, date(2026, 3, 9), date(2026, 3, 13))
    # Only 1 March falls inside the month
    _approved_leave(repos, nurse, date(2026, 2, 26), date(2026, 3, 1))

    record = container.salary_service.calculate({"employeeId": nurse.id, **PERIOD})

    assert record.month == "March"
    assert record.attendance.working_days == 22
    assert record.attendance.leave_taken == 6
    assert record.attendance.paid_leave_days == 3
    assert record.attendance.no_pay_leave == 3
    assert record.deductions.no_pay_days_deduction == 3000
    assert record.id is None
    assert repos["salaries_repo"].items == {}


def test_zero_basic_salary_falls_back_to_default(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=0)

    record = container.salary_service.calculate({"employeeId": nurse.id, **PERIOD})

    assert record.basic_salary == 100000


def test_overtime_hours_come_from_schedules(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=88000)
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    shift = {"type": "morning", "startTime": "08:00", "endTime": "16:00"}
    for day, hours in (("2026-03-02", 2), ("2026-03-03", 3)):
        container.schedule_service.create(
            {"employee": nurse.id, "date": day, "shift": shift, "overtimeHours": hours}, created_by=int(manager.id)
        )

    record = container.salary_service.calculate({"employeeId": nurse.id, **PERIOD})

    assert record.attendance.overtime_hours == 5
    # 88000 / (22 * 8) * 1.5 * 5
    assert record.additional_perks.overtime == 3750


def test_create_then_duplicate_conflicts(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=100000)
    hr = make_user(repos["users_repo"], role=Role.HR)

    record = container.salary_service.create({"employee": nurse.id, **PERIOD, "bonus": 5000}, prepared_by=int(hr.id))

    assert record.id is not None
    assert record.status == SalaryStatus.DRAFT
    assert record.prepared_by == hr.id
    assert record.net_payable_salary == 142500 - 8000 + 5000

    with pytest.raises(ConflictError, match="already exists"):
        container.salary_service.create({"employee": nurse.id, **PERIOD}, prepared_by=int(hr.id))
    with pytest.raises(ConflictError, match="already exists"):
        container.salary_service.calculate({"employeeId": nurse.id, **PERIOD})


@pytest.mark.parametrize("status", [EmploymentStatus.INACTIVE, EmploymentStatus.TERMINATED])
def test_inactive_or_terminated_employee_is_rejected(container, repos, status):
    nurse = make_user(repos["users_repo"], employment_status=status)

    with pytest.raises(ValidationError, match=status.value):
        container.salary_service.create({"employee": nurse.id, **PERIOD}, prepared_by=1)


def test_invalid_period_is_rejected(container, repos):
    nurse = make_user(repos["users_repo"])

    with pytest.raises(ValidationError):
        container.salary_service.calculate({"employeeId": nurse.id, "month": "Smarch", "year": 2026})
    with pytest.raises(ValidationError):
        container.salary_service.calculate({"employeeId": nurse.id, "month": "March", "year": 2019})


def test_workflow_draft_approved_paid(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=100000)
    hr = make_user(repos["users_repo"], role=Role.HR)
    record = container.salary_service.create({"employee": nurse.id, **PERIOD}, prepared_by=int(hr.id))
    service = container.salary_service

    with pytest.raises(ConflictError):
        service.mark_paid(int(record.id))

    approved = service.approve(int(record.id), approver_id=int(hr.id))
    assert approved.status == SalaryStatus.APPROVED
    with pytest.raises(ConflictError):
        service.approve(int(record.id), approver_id=int(hr.id))

    paid = service.mark_paid(int(record.id))
    assert paid.status == SalaryStatus.PAID
    assert paid.paid_date is not None

    with pytest.raises(ValidationError, match="paid"):
        service.update(int(record.id), {"bonus": 1})
    with pytest.raises(ValidationError, match="paid"):
        service.delete(int(record.id))


def test_update_recomputes_totals(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=100000)
    record = container.salary_service.create({"employee": nurse.id, **PERIOD}, prepared_by=1)

    updated = container.salary_service.update(int(record.id), {"basicSalary": 200000, "apit": 1500})

    assert updated.allowances.cost_of_living == 50000
    assert updated.deductions.epf_employee == 16000
    assert updated.net_payable_salary == 200000 + 67500 - 16000 - 1500
    assert repos["salaries_repo"].get_by_id(int(record.id)) == updated


def test_only_owner_or_payroll_staff_can_read_a_salary(container, repos):
    nurse = make_user(repos["users_repo"], basic_salary=100000)
    other = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    hr = make_user(repos["users_repo"], role=Role.HR)
    record = container.salary_service.create({"employee": nurse.id, **PERIOD}, prepared_by=int(hr.id))

    assert container.salary_service.get_for(int(record.id), user=nurse).id == record.id
    assert container.salary_service.get_for(int(record.id), user=hr).id == record.id
    for outsider in (other, manager):
        with pytest.raises(AuthorizationError):
            container.salary_service.get_for(int(record.id), user=outsider)


def test_stats_totals(container, repos):
    hr = make_user(repos["users_repo"], role=Role.HR)
    for _ in range(2):
        nurse = make_user(repos["users_repo"], basic_salary=100000, department="ICU")
        container.salary_service.create({"employee": nurse.id, **PERIOD}, prepared_by=int(hr.id))

    stats = container.salary_service.stats(filters={"month": "March", "year": "2026"})

    assert stats["totalSalaries"] == 2
    assert stats["draftSalaries"] == 2
    assert stats["totalPayroll"] == 2 * 134500
    assert stats["departmentStats"][0]["_id"] == "ICU"
