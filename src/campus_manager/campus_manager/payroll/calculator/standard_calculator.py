from __future__ import annotations

from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: basic + allowances - deductions."""

    def net_salary(self, *, basic: float, allowances: float, deductions: float) -> float:
        return round(float(basic or 0) + float(allowances or 0) - float(deductions or 0), 2)
