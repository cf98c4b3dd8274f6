import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_portal"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Asia/Bangkok")
OVERTIME_THRESHOLD_MINUTES = int(os.getenv("OVERTIME_THRESHOLD_MINUTES", "15"))
IMPORT_MAX_WORKERS = int(os.getenv("IMPORT_MAX_WORKERS", "8"))

PAYROLL_SETTINGS = {
    "sso_rate_percent": os.getenv("SSO_RATE_PERCENT", "5"),
    "sso_cap": os.getenv("SSO_CAP", "750"),
    "overtime_rate": os.getenv("OVERTIME_RATE", "1.5"),
    "advance_percentage": int(os.getenv("ADVANCE_PERCENTAGE", "50")),
    "public_holidays": [d for d in os.getenv("PUBLIC_HOLIDAYS", "").split(",") if d.strip()],
    "attendance_bonus": {
        "allowed_absences": int(os.getenv("BONUS_ALLOWED_ABSENCES", "0")),
        "allowed_lates": int(os.getenv("BONUS_ALLOWED_LATES", "2")),
        "month1": os.getenv("BONUS_MONTH1", "400"),
        "month2": os.getenv("BONUS_MONTH2", "500"),
        "month3": os.getenv("BONUS_MONTH3", "600"),
    },
    "leave_entitlements": {
        "annual_days": int(os.getenv("ANNUAL_LEAVE_DAYS", "6")),
        "sick_days": int(os.getenv("SICK_LEAVE_QUOTA_DAYS", "30")),
        "public_holiday_credit_cap": int(os.getenv("PUBLIC_HOLIDAY_CREDIT_CAP", "15")),
    },
}
