from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .accounting.service import AccountingService
from .accounts.mysql_account_repository import MySQLAccountRepository, MySQLAccountTransactionRepository
from .accounts.repository import AccountRepository, AccountTransactionRepository
from .accounts.service import AccountService
from .activity.mysql_activity_repository import MySQLActivityLogRepository
from .activity.repository import ActivityLogRepository
from .activity.service import ActivityLogService
from .branches.mysql_branch_repository import MySQLBranchRepository
from .branches.repository import BranchRepository
from .branches.service import BranchService
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.mysql_division_repository import MySQLDivisionRepository
from .classes.repository import ClassRepository, DivisionRepository
from .classes.service import ClassService, DivisionService
from .common.catalog import CatalogService
from .database.connection import DBConfig, DatabaseConnection
from .fees.mysql_fee_repository import MySQLFeePaymentRepository, MySQLFeeStructureRepository
from .fees.repository import FeePaymentRepository, FeeStructureRepository
from .fees.service import FeePaymentService, FeeStructureService
from .finance.mysql_finance_repository import (
    MySQLExpenseCategoryRepository,
    MySQLExpenseRepository,
    MySQLIncomeCategoryRepository,
    MySQLIncomeRepository,
)
from .finance.repository import ExpenseCategoryRepository, ExpenseRepository, IncomeCategoryRepository, IncomeRepository
from .finance.service import ExpenseService, IncomeService, build_expense_category_service, build_income_category_service
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .receipts.mysql_receipt_config_repository import MySQLReceiptConfigRepository
from .receipts.repository import ReceiptConfigRepository
from .receipts.service import ReceiptConfigService
from .reports.service import ReportService
from .staff.mysql_department_repository import MySQLDepartmentRepository, MySQLDesignationRepository
from .staff.mysql_staff_repository import MySQLStaffRepository
from .staff.repository import DepartmentRepository, DesignationRepository, StaffRepository
from .staff.service import DepartmentService, StaffService, build_designation_service
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .textbooks.indent_service import IndentService
from .textbooks.mysql_textbook_repository import MySQLTextBookRepository, MySQLTextbookIndentRepository
from .textbooks.repository import TextBookRepository, TextbookIndentRepository
from .textbooks.service import TextbookService
from .transport.mysql_transport_repository import MySQLTransportRouteRepository
from .transport.repository import TransportRouteRepository
from .transport.service import TransportRouteService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Repositories:
    users: UserRepository
    branches: BranchRepository
    activity: ActivityLogRepository
    classes: ClassRepository
    divisions: DivisionRepository
    students: StudentRepository
    staff: StaffRepository
    departments: DepartmentRepository
    designations: DesignationRepository
    routes: TransportRouteRepository
    fee_structures: FeeStructureRepository
    fee_payments: FeePaymentRepository
    receipt_configs: ReceiptConfigRepository
    payroll: PayrollRepository
    accounts: AccountRepository
    account_transactions: AccountTransactionRepository
    expenses: ExpenseRepository
    income: IncomeRepository
    expense_categories: ExpenseCategoryRepository
    income_categories: IncomeCategoryRepository
    textbooks: TextBookRepository
    indents: TextbookIndentRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    repos: Repositories

    activity_service: ActivityLogService
    auth_service: AuthService
    user_service: UserService
    branch_service: BranchService
    class_service: ClassService
    division_service: DivisionService
    student_service: StudentService
    staff_service: StaffService
    department_service: DepartmentService
    designation_service: CatalogService
    transport_service: TransportRouteService
    receipt_service: ReceiptConfigService
    fee_structure_service: FeeStructureService
    fee_payment_service: FeePaymentService
    payroll_service: PayrollService
    account_service: AccountService
    expense_service: ExpenseService
    income_service: IncomeService
    expense_category_service: CatalogService
    income_category_service: CatalogService
    textbook_service: TextbookService
    indent_service: IndentService
    accounting_service: AccountingService
    report_service: ReportService


def mysql_repositories(conn: DatabaseConnection) -> Repositories:
    return Repositories(
        users=MySQLUserRepository(conn),
        branches=MySQLBranchRepository(conn),
        activity=MySQLActivityLogRepository(conn),
        classes=MySQLClassRepository(conn),
        divisions=MySQLDivisionRepository(conn),
        students=MySQLStudentRepository(conn),
        staff=MySQLStaffRepository(conn),
        departments=MySQLDepartmentRepository(conn),
        designations=MySQLDesignationRepository(conn),
        routes=MySQLTransportRouteRepository(conn),
        fee_structures=MySQLFeeStructureRepository(conn),
        fee_payments=MySQLFeePaymentRepository(conn),
        receipt_configs=MySQLReceiptConfigRepository(conn),
        payroll=MySQLPayrollRepository(conn),
        accounts=MySQLAccountRepository(conn),
        account_transactions=MySQLAccountTransactionRepository(conn),
        expenses=MySQLExpenseRepository(conn),
        income=MySQLIncomeRepository(conn),
        expense_categories=MySQLExpenseCategoryRepository(conn),
        income_categories=MySQLIncomeCategoryRepository(conn),
        textbooks=MySQLTextBookRepository(conn),
        indents=MySQLTextbookIndentRepository(conn),
    )


def wire(repos: Repositories, *, conn: Optional[DatabaseConnection] = None) -> Container:
    activity = ActivityLogService(repos.activity)
    branches = BranchService(repos.branches, activity=activity)
    # A branch cannot be deleted while any of these still reference it
    for dependent in (repos.users, repos.classes, repos.students, repos.staff, repos.fee_payments, repos.expenses):
        branches.add_dependent(dependent)

    receipts = ReceiptConfigService(repos.receipt_configs, branches=branches, activity=activity)
    accounts = AccountService(repos.accounts, repos.account_transactions, branches=branches, activity=activity)

    return Container(
        conn=conn,
        repos=repos,
        activity_service=activity,
        auth_service=AuthService(repos.users, activity=activity),
        user_service=UserService(repos.users, activity=activity),
        branch_service=branches,
        class_service=ClassService(repos.classes, repos.divisions, repos.students, branches=branches, activity=activity),
        division_service=DivisionService(repos.divisions, repos.classes, repos.staff, repos.students, activity=activity),
        student_service=StudentService(repos.students, repos.classes, repos.routes, branches=branches, activity=activity),
        staff_service=StaffService(repos.staff, repos.divisions, branches=branches, activity=activity),
        department_service=DepartmentService(repos.departments, repos.staff, branches=branches, activity=activity),
        designation_service=build_designation_service(repos.designations, repos.staff, branches=branches, activity=activity),
        transport_service=TransportRouteService(repos.routes, repos.students, branches=branches, activity=activity),
        receipt_service=receipts,
        fee_structure_service=FeeStructureService(repos.fee_structures, repos.classes, branches=branches, activity=activity),
        fee_payment_service=FeePaymentService(
            repos.fee_payments, repos.fee_structures, repos.students, receipts=receipts, activity=activity
        ),
        payroll_service=PayrollService(
            repos.payroll, repos.staff, branches=branches, activity=activity, calculator=StandardPayrollCalculator()
        ),
        account_service=accounts,
        expense_service=ExpenseService(repos.expenses, branches=branches, activity=activity),
        income_service=IncomeService(repos.income, accounts=accounts, branches=branches, activity=activity),
        expense_category_service=build_expense_category_service(
            repos.expense_categories, repos.expenses, branches=branches, activity=activity
        ),
        income_category_service=build_income_category_service(
            repos.income_categories, repos.income, branches=branches, activity=activity
        ),
        textbook_service=TextbookService(repos.textbooks, repos.classes, branches=branches, activity=activity),
        indent_service=IndentService(repos.indents, repos.textbooks, repos.students, activity=activity),
        accounting_service=AccountingService(repos.fee_payments, repos.expenses, repos.payroll),
        report_service=ReportService(
            students=repos.students,
            staff=repos.staff,
            payments=repos.fee_payments,
            expenses=repos.expenses,
            payroll=repos.payroll,
            textbooks=repos.textbooks,
            routes=repos.routes,
            activity=activity,
        ),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(mysql_repositories(conn), conn=conn)
