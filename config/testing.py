import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "latex_manager_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

TOKEN_MAX_AGE_SECONDS = 3600
RFID_DEVICE_KEY = "test-device-key"

WORKDAY_START = "09:00"
LATE_GRACE_MINUTES = 15

AUTO_INIT_DB = False
AUTO_SEED_DB = False

BACKUP_DIR = os.getenv("BACKUP_DIR", "backups")
