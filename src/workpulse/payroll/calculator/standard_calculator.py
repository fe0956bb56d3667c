from __future__ import annotations

from dataclasses import replace

from ...common.money import amount_in_words, round_half_up
from ...core.constants import (
    CONVEYANCE_ALLOWANCE,
    COST_OF_LIVING_RATE,
    EPF_EMPLOYEE_RATE,
    EPF_EMPLOYER_RATE,
    ETF_RATE,
    FOOD_ALLOWANCE,
    MEDICAL_ALLOWANCE,
    NO_PAY_DAILY_RATE,
    OVERTIME_MULTIPLIER,
    STANDARD_WORK_HOURS_PER_DAY,
)
from ..model import Allowances, EmployerContributions, SalaryRecord
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule set.

    gross = basic + allowances
    before deduction = gross + overtime pay + bonus + reimbursements
    net = before deduction - (no-pay + EPF employee + APIT + salary advance)
    """

    def split_leave(self, leave_taken: float, allowance: float) -> tuple[float, float]:
        paid = min(leave_taken, max(allowance, 0))
        return paid, leave_taken - paid

    def overtime_pay(self, basic: float, working_days: int, overtime_hours: float) -> int:
        if working_days <= 0 or not overtime_hours:
            return 0
        hourly = basic / (working_days * STANDARD_WORK_HOURS_PER_DAY)
        return round_half_up(hourly * OVERTIME_MULTIPLIER * overtime_hours)

    def derive(self, record: SalaryRecord) -> SalaryRecord:
        basic = record.basic_salary
        attendance = record.attendance

        cost_of_living = round_half_up(basic * COST_OF_LIVING_RATE)
        allowances = Allowances(
            cost_of_living=cost_of_living,
            food=FOOD_ALLOWANCE,
            conveyance=CONVEYANCE_ALLOWANCE,
            medical=MEDICAL_ALLOWANCE,
            total=cost_of_living + FOOD_ALLOWANCE + CONVEYANCE_ALLOWANCE + MEDICAL_ALLOWANCE,
        )

        epf_employee = round_half_up(basic * EPF_EMPLOYEE_RATE)
        no_pay = round_half_up(attendance.no_pay_leave * NO_PAY_DAILY_RATE)
        deductions = replace(record.deductions, no_pay_days_deduction=no_pay, epf_employee=epf_employee)
        deductions = replace(
            deductions,
            total=deductions.no_pay_days_deduction + deductions.salary_advance + deductions.epf_employee + deductions.apit,
        )

        perks = replace(
            record.additional_perks,
            overtime=self.overtime_pay(basic, attendance.working_days, attendance.overtime_hours),
        )

        gross = basic + allowances.total
        before_deduction = gross + perks.overtime + perks.reimbursements + perks.bonus
        net = before_deduction - deductions.total

        return replace(
            record,
            allowances=allowances,
            additional_perks=perks,
            deductions=deductions,
            employer_contributions=EmployerContributions(
                epf_employee=epf_employee,
                epf_employer=round_half_up(basic * EPF_EMPLOYER_RATE),
                etf=round_half_up(basic * ETF_RATE),
            ),
            epf_info=replace(record.epf_info, basic_salary_for_epf=basic),
            gross_salary=gross,
            salary_before_deduction=before_deduction,
            net_payable_salary=net,
            amount_in_words=amount_in_words(net),
        )
