import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_portal_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False

BUSINESS_TIMEZONE = "Asia/Bangkok"
OVERTIME_THRESHOLD_MINUTES = 15
IMPORT_MAX_WORKERS = 4

PAYROLL_SETTINGS = {
    "sso_rate_percent": "5",
    "sso_cap": "750",
    "overtime_rate": "1.5",
    "advance_percentage": 50,
    "public_holidays": [],
    "attendance_bonus": {
        "allowed_absences": 0,
        "allowed_lates": 2,
        "month1": "400",
        "month2": "500",
        "month3": "600",
    },
    "leave_entitlements": {"annual_days": 6, "sick_days": 30, "public_holiday_credit_cap": 15},
}
