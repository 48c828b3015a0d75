import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "workforce_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

OTP_VALIDITY_SECONDS = int(os.getenv("OTP_VALIDITY_SECONDS", "300"))
OTP_CODE_LENGTH = int(os.getenv("OTP_CODE_LENGTH", "6"))

# Comma-separated ISO dates, e.g. "2026-01-01,2026-12-25"
PUBLIC_HOLIDAYS = os.getenv("PUBLIC_HOLIDAYS", "")
# Comma-separated category=days overrides, e.g. "casual=12,sick=10"
LEAVE_ALLOCATIONS = os.getenv("LEAVE_ALLOCATIONS", "")
