"""
scheduler.py — SubTrack reminder scheduler

Fires one renewal-reminder sweep per day. It presents CRON_SECRET exactly like
an external cron caller would, either to the running API (REMINDER_ENDPOINT)
or to the sweep in-process.

Usage:
    python scheduler.py           # sweep now, then daily at REMINDER_TIME
    python scheduler.py --once    # sweep once, then exit
"""

import json
import logging
import sys
import time
import urllib.error
import urllib.request
from datetime import date

import schedule

import config
import reminders
from mailer import default_mailer
from storage import JsonlStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)


def ping_endpoint(url: str, secret: str) -> dict:
    """Call the API's cron route and return its JSON reply."""
    req = urllib.request.Request(url, headers={"Authorization": f"Bearer {secret}"})
    with urllib.request.urlopen(req, timeout=60) as resp:
        return json.loads(resp.read())


def run_daily_reminders() -> bool:
    """One sweep. Returns whether it succeeded; never raises."""
    auth = f"Bearer {config.CRON_SECRET}"
    if config.REMINDER_ENDPOINT:
        try:
            reply = ping_endpoint(config.REMINDER_ENDPOINT, config.CRON_SECRET)
        except (urllib.error.URLError, OSError, ValueError) as exc:
            log.error(f"Reminder endpoint call failed: {exc}")
            return False
        log.info(f"Reminder sweep via API — {reply.get('emailsSent', 0)} email(s) sent.")
        return bool(reply.get("success"))

    try:
        result = reminders.trigger_sweep(
            auth,
            config.CRON_SECRET,
            JsonlStore(config.DATA_DIR),
            default_mailer(),
            date.today(),
            max_workers=config.REMINDER_MAX_WORKERS,
            ledger=reminders.default_ledger(),
        )
    except reminders.TriggerUnauthorized:
        log.error("CRON_SECRET is not set — refusing to run the reminder sweep.")
        return False
    log.info(f"Daily reminder check: {result.emails_sent} reminder(s) sent.")
    return result.success


if __name__ == "__main__":
    args = sys.argv[1:]

    if "--once" in args:
        sys.exit(0 if run_daily_reminders() else 1)

    log.info(f"Scheduling daily reminder sweep at {config.REMINDER_TIME}…")
    schedule.every().day.at(config.REMINDER_TIME).do(run_daily_reminders)
    run_daily_reminders()       # run immediately on first start
    while True:
        schedule.run_pending()
        time.sleep(30)
