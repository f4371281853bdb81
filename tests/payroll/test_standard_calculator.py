from src.campus_manager.campus_manager.payroll.calculator.standard_calculator import StandardPayrollCalculator


def test_net_salary_adds_allowances_and_subtracts_deductions():
    calc = StandardPayrollCalculator()
    assert calc.net_salary(basic=25000, allowances=3000, deductions=1500.5) == 26499.5


def test_missing_components_count_as_zero():
    calc = StandardPayrollCalculator()
    assert calc.net_salary(basic=20000, allowances=None, deductions=None) == 20000.0
