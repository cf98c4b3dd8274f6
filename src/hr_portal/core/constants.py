"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_BUSINESS_TIMEZONE = "Asia/Bangkok"

# Fixed business rules for break handling.
AUTO_BREAK_THRESHOLD_MINUTES = 300
AUTO_BREAK_MINUTES = 60
SCHEDULE_INCLUDED_BREAK_MINUTES = 60

DEFAULT_OVERTIME_THRESHOLD_MINUTES = 15
DEFAULT_OVERTIME_RATE = "1.5"
DEFAULT_STANDARD_DAY_HOURS = 8

DEFAULT_SSO_RATE_PERCENT = "5"
DEFAULT_SSO_CAP = "750"
DEFAULT_ADVANCE_PERCENTAGE = 50

DEFAULT_IMPORT_MAX_WORKERS = 8

ATTENDANCE_REQUIRED_HEADERS = ("staffid", "date")

PLANNING_REQUIRED_HEADERS = ("staffid", "date")

# Leave entitlements used for sick-leave overage and leaver payouts.
DEFAULT_ANNUAL_LEAVE_DAYS = 6
DEFAULT_SICK_LEAVE_QUOTA_DAYS = 30
DEFAULT_PUBLIC_HOLIDAY_CREDIT_CAP = 15
