from __future__ import annotations

from abc import ABC, abstractmethod


class PayrollCalculator(ABC):
    """Net pay rule for a payroll entry; swap implementations for allowance or tax policies."""

    @abstractmethod
    def net_salary(self, *, basic: float, allowances: float, deductions: float) -> float:
        raise NotImplementedError
