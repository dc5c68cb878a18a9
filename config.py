import os

from dotenv import load_dotenv

load_dotenv()

# Hosted Postgres often hands out "postgres://..." URLs;
# SQLAlchemy 2.x requires "postgresql://...".
_raw_db_url = os.getenv("DATABASE_URL", "sqlite:///./medremind.db")
DATABASE_URL = _raw_db_url.replace("postgres://", "postgresql://", 1)

SECRET_KEY = os.getenv("SECRET_KEY", "medremind-dev-secret-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days

# Wall-clock zone used for reminder times and "today" boundaries.
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Shanghai")

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

# Stock prediction
LOW_STOCK_DAYS_THRESHOLD = int(os.getenv("LOW_STOCK_DAYS_THRESHOLD", "7"))
URGENT_DAYS_THRESHOLD = 3
NEVER_EXHAUST_DAYS = 999

MAX_FAMILY_CONTACTS = 5

# Reminder matching
REMINDER_WINDOW_MINUTES = 2
REMINDER_POLL_SECONDS = int(os.getenv("REMINDER_POLL_SECONDS", "30"))
REMINDER_POLLER_ENABLED = os.getenv("REMINDER_POLLER_ENABLED", "").lower() in {"1", "true", "yes"}

SMTP_TIMEOUT_SECONDS = int(os.getenv("SMTP_TIMEOUT_SECONDS", "10"))
EMAIL_BRAND = "MedRemind"

# Secret for external scheduler endpoint (e.g., cron-job.org)
JOB_RUN_KEY = os.getenv("JOB_RUN_KEY", "")

# Firebase service account JSON for push messages; pushes are skipped when unset.
FIREBASE_SERVICE_ACCOUNT = os.getenv("FIREBASE_SERVICE_ACCOUNT", "")
