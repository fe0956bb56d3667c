"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

DEFAULT_LATE_GRACE_MINUTES = 5
STANDARD_WORK_MINUTES = 480
STANDARD_WORK_HOURS_PER_DAY = 8

JWT_ALGORITHM = "HS256"
RESET_TOKEN_MINUTES = 10
MIN_PASSWORD_LENGTH = 6

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
MIN_SALARY_YEAR = 2020
MAX_SALARY_YEAR = 2050

# Payroll rules
DEFAULT_BASIC_SALARY = 100000
DEFAULT_MONTHLY_LEAVE_ALLOWANCE = 3
COST_OF_LIVING_RATE = 0.25
FOOD_ALLOWANCE = 6000
CONVEYANCE_ALLOWANCE = 3500
MEDICAL_ALLOWANCE = 8000
NO_PAY_DAILY_RATE = 1000
EPF_EMPLOYEE_RATE = 0.08
EPF_EMPLOYER_RATE = 0.12
ETF_RATE = 0.03
OVERTIME_MULTIPLIER = 1.5

DEFAULT_BANK_NAME = "Please Update Bank Details"
DEFAULT_ACCOUNT_NO = "000000000"
DEFAULT_BRANCH_NAME = "Please Update Branch"

# Yearly leave entitlements used when no active policy exists for a type
DEFAULT_LEAVE_ENTITLEMENTS = {
    "annual": 21,
    "sick": 14,
    "casual": 7,
    "emergency": 3,
    "maternity": 90,
    "paternity": 14,
}
