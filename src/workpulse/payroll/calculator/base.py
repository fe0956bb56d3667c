from __future__ import annotations

from abc import ABC, abstractmethod

from ..model import SalaryRecord


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def derive(self, record: SalaryRecord) -> SalaryRecord:
        """Return the record with every derived amount recomputed from its inputs."""
        raise NotImplementedError

    @abstractmethod
    def split_leave(self, leave_taken: float, allowance: float) -> tuple[float, float]:
        """Split leave days into (paid, no-pay) against the monthly allowance."""
        raise NotImplementedError
