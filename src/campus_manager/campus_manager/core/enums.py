from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    SUPER_ADMIN = "super_admin"
    BRANCH_ADMIN = "branch_admin"
    ACCOUNTANT = "accountant"
    TEACHER = "teacher"
    STAFF = "staff"


ADMIN_ROLES = frozenset({Role.SUPER_ADMIN, Role.BRANCH_ADMIN})


class PermissionAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Status(str, Enum):
    """Soft-disable flag shared by most master records."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class TransportType(str, Enum):
    SCHOOL = "school"
    OWN = "own"
    NONE = "none"


class FeeType(str, Enum):
    TUITION = "tuition"
    TRANSPORT = "transport"
    COCURRICULAR = "cocurricular"
    MAINTENANCE = "maintenance"
    EXAM = "exam"
    TEXTBOOK = "textbook"
    OTHER = "other"


class DistanceGroup(str, Enum):
    GROUP1 = "group1"
    GROUP2 = "group2"
    GROUP3 = "group3"
    GROUP4 = "group4"


class PaymentMethod(str, Enum):
    """Union of every payment method; each module accepts a subset."""

    CASH = "cash"
    BANK = "bank"
    ONLINE = "online"
    CHEQUE = "cheque"
    ADJUSTMENT = "adjustment"


class PaymentStatus(str, Enum):
    """Settlement state of a fee payment or an indent."""

    PAID = "paid"
    PARTIAL = "partial"
    PENDING = "pending"


class PayrollStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"


class IndentStatus(str, Enum):
    PENDING = "pending"
    ISSUED = "issued"
    PARTIALLY_RETURNED = "partially_returned"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class IndentItemStatus(str, Enum):
    ISSUED = "issued"
    PARTIALLY_RETURNED = "partially_returned"
    RETURNED = "returned"
    LOST = "lost"
    DAMAGED = "damaged"


class BookCondition(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"
    LOST = "lost"


RESTOCKABLE_CONDITIONS = frozenset({BookCondition.GOOD, BookCondition.FAIR})


class AccountType(str, Enum):
    CASH = "cash"
    BANK = "bank"


class TransactionType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class ReferenceType(str, Enum):
    FEE_PAYMENT = "fee_payment"
    EXPENSE = "expense"
    PAYROLL = "payroll"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"
    OPENING_BALANCE = "opening_balance"


class ActivityAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    CLEANUP = "CLEANUP"
