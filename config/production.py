import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "workforce_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

OTP_VALIDITY_SECONDS = int(os.getenv("OTP_VALIDITY_SECONDS", "300"))
OTP_CODE_LENGTH = int(os.getenv("OTP_CODE_LENGTH", "6"))

PUBLIC_HOLIDAYS = os.getenv("PUBLIC_HOLIDAYS", "")
LEAVE_ALLOCATIONS = os.getenv("LEAVE_ALLOCATIONS", "")
