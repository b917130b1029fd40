import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # --- Database ---
    DATABASE_URL = os.environ.get("DATABASE_URL")
    DATABASE_PUBLIC_URL = os.environ.get("DATABASE_PUBLIC_URL")

    # --- Redis (Celery broker + realtime pub/sub) ---
    REDIS_URL = os.environ.get("REDIS_URL")

    # --- Email (SMTP) ---
    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASS = os.environ.get("SMTP_PASS")
    SMTP_FROM = os.environ.get("SMTP_FROM", "no-reply@sahayata.local")
    SMTP_STARTTLS = _flag("SMTP_STARTTLS", "true")
    SMTP_TIMEOUT = float(os.environ.get("SMTP_TIMEOUT", "10"))

    # --- Telnyx (SMS) ---
    TELNYX_API_KEY = os.environ.get("TELNYX_API_KEY")
    TELNYX_FROM_NUMBER = os.environ.get("TELNYX_FROM_NUMBER")
    SMS_TIMEOUT = float(os.environ.get("SMS_TIMEOUT", "10"))
    SMS_DEFAULT_COUNTRY_CODE = os.environ.get("SMS_DEFAULT_COUNTRY_CODE", "91")

    # --- Reminder scheduling ---
    # Every stored date/time is interpreted in this zone; scheduler and clients share it.
    SCHEDULE_TIMEZONE = os.environ.get("SCHEDULE_TIMEZONE", "Asia/Kolkata")
    REMINDER_WINDOW_MINUTES = int(os.environ.get("REMINDER_WINDOW_MINUTES", "60"))
    REMINDER_SCAN_INTERVAL_SECONDS = float(os.environ.get("REMINDER_SCAN_INTERVAL_SECONDS", "300"))

    # --- Logging ---
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


settings = Settings()
