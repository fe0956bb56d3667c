from __future__ import annotations

from dataclasses import replace

import pytest

from workpulse.payroll.calculator.standard_calculator import StandardPayrollCalculator
from workpulse.payroll.model import AdditionalPerks, Deductions, EmployeeInfo, SalaryAttendance, SalaryRecord

INFO = EmployeeInfo(
    employee_id="EMP20240001",
    name="Asha Perera",
    designation="Nurse",
    epf_no="EMP20240001/01",
    bank_name="People's Bank",
    account_no="123456",
    branch_name="Colombo",
)


def _record(basic=100000, **attendance) -> SalaryRecord:
    return SalaryRecord(
        id=None,
        employee_id=1,
        month="March",
        year=2026,
        employee_info=INFO,
        attendance=SalaryAttendance(working_days=22, **attendance),
        basic_salary=basic,
    )


@pytest.mark.parametrize(
    "taken,allowance,expected",
    [(5, 3, (3, 2)), (2, 3, (2, 0)), (0, 3, (0, 0)), (2.5, 3, (2.5, 0)), (4, 0, (0, 4))],
)
def test_split_leave(taken, allowance, expected):
    assert StandardPayrollCalculator().split_leave(taken, allowance) == expected


def test_derive_standard_month():
    record = StandardPayrollCalculator().derive(_record(leave_taken=5, paid_leave_days=3, no_pay_leave=2))

    assert record.allowances.cost_of_living == 25000
    assert record.allowances.total == 42500
    assert record.deductions.no_pay_days_deduction == 2000
    assert record.deductions.epf_employee == 8000
    assert record.deductions.total == 10000
    assert record.employer_contributions.epf_employer == 12000
    assert record.employer_contributions.etf == 3000
    assert record.gross_salary == 142500
    assert record.salary_before_deduction == 142500
    assert record.net_payable_salary == 132500
    assert record.amount_in_words == "One Lakh Thirty Two Thousand Five Hundred Only"


def test_employer_contributions_are_not_deducted():
    record = StandardPayrollCalculator().derive(_record())

    assert record.net_payable_salary == record.gross_salary - record.deductions.epf_employee


def test_overtime_and_operator_amounts_flow_into_net():
    record = replace(
        _record(overtime_hours=10),
        additional_perks=AdditionalPerks(bonus=5000, reimbursements=1200),
        deductions=Deductions(apit=3000, salary_advance=10000),
    )

    derived = StandardPayrollCalculator().derive(record)

    # 100000 / (22 * 8) * 1.5 * 10
    assert derived.additional_perks.overtime == 8523
    assert derived.salary_before_deduction == 142500 + 8523 + 5000 + 1200
    assert derived.deductions.total == 8000 + 3000 + 10000
    assert derived.net_payable_salary == derived.salary_before_deduction - 21000


def test_derive_overwrites_stale_totals():
    stale = replace(_record(), net_payable_salary=1, gross_salary=1)

    derived = StandardPayrollCalculator().derive(stale)

    assert derived.gross_salary == 142500
    assert derived.net_payable_salary == 134500


def test_overtime_needs_working_days():
    assert StandardPayrollCalculator().overtime_pay(100000, 0, 10) == 0
