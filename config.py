"""
config.py — SubTrack settings

Everything is read from the environment (a local .env file is honoured).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(os.environ.get("SUBTRACK_DATA_DIR", "."))

# Shared secrets
CRON_SECRET    = os.environ.get("CRON_SECRET", "")
WEBHOOK_SECRET = os.environ.get("WEBHOOK_SECRET", "")

# Outbound mail: Resend when an API key is present, SMTP otherwise
RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
MAIL_FROM      = os.environ.get("MAIL_FROM", "SubTrack <reminders@subtrack.app>")
SMTP_SERVER    = os.environ.get("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT      = int(os.environ.get("SMTP_PORT", "587"))
SMTP_USERNAME  = os.environ.get("SMTP_USERNAME", "")
SMTP_PASSWORD  = os.environ.get("SMTP_PASSWORD", "")

# Reminder sweep
REMINDER_TIME        = os.environ.get("REMINDER_TIME", "09:00")
REMINDER_MAX_WORKERS = int(os.environ.get("REMINDER_MAX_WORKERS", "1"))
REMINDER_DEDUP       = os.environ.get("REMINDER_DEDUP", "").strip().lower() in ("1", "true", "yes")
REMINDER_ENDPOINT    = os.environ.get("REMINDER_ENDPOINT", "")

DASHBOARD_URL = os.environ.get("DASHBOARD_URL", "https://subtrack.vercel.app/subscriptions")
