"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
DEFAULT_ACTIVITY_LIMIT = 20
DEFAULT_TRANSACTION_LIMIT = 50
DEFAULT_FEE_DUES_LIMIT = 20
DEFAULT_TRANSPORT_REPORT_LIMIT = 50
DEFAULT_LOG_RETENTION_DAYS = 90
DEFAULT_SESSION_DAYS = 7

MIN_PIN_LENGTH = 4
LOW_STOCK_RATIO = 0.1
BALANCE_TOLERANCE = 0.01
RECENT_ITEMS = 10

PAYROLL_MIN_YEAR = 2020
PAYROLL_MAX_YEAR = 2050

# April is the first month of the fiscal year used by the annual report.
FISCAL_YEAR_START_MONTH = 4

MONTH_NAMES = (
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

INTERNATIONAL_PHONE_PATTERN = r"^\+\d{1,4}\d{6,14}$"
STAFF_PHONE_PATTERN = r"^(\+\d{1,4}\d{6,14}|\d{10})$"
MOBILE_PATTERN = r"^\+?\d{10,15}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
