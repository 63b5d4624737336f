"""
reminders.py — Renewal reminder sweep

One sweep looks at every user, picks the subscriptions renewing in 1–7 days
(never on the due day itself), and sends each such user a single email
listing them together with the user's whole monthly spend.

A sweep is started by an external schedule. trigger_sweep() is the guarded
entry point: the caller must present "Bearer <CRON_SECRET>".
"""

import html
import json
import logging
import secrets
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from pathlib import Path
from typing import Optional

import config
from analyzer import monthly_total
from billing import format_currency
from mailer import Mailer
from models import ReminderItem, ReminderNotification, Subscription, SweepResult, User
from renewal import REMINDER_WINDOW, days_until_renewal, within_window
from storage import SubscriptionStore

log = logging.getLogger(__name__)


class TriggerUnauthorized(Exception):
    """The sweep was requested without the right shared secret."""


# ── Filter & compose ──────────────────────────────────────────────────────────
def due_for_reminder(subscriptions: list[Subscription], today: date) -> list[tuple[Subscription, int]]:
    """(subscription, days until renewal) pairs inside the reminder window, in stored order."""
    first_day, last_day = REMINDER_WINDOW
    due = []
    for s in subscriptions:
        days = days_until_renewal(s.next_billing_date, today)
        if within_window(days, first_day, last_day):
            due.append((s, days))
    return due


def compose_reminder(user: User, today: date) -> Optional[ReminderNotification]:
    """The notification for one user, or None when there's nothing to send."""
    if not user.email:
        return None
    due = due_for_reminder(user.subscriptions, today)
    if not due:
        return None
    return ReminderNotification(
        to=user.email,
        recipient_name=user.name,
        items=[
            ReminderItem(name=s.name, formatted_price=format_currency(s.price, s.currency), days_until=days)
            for s, days in due
        ],
        # every subscription counts towards the total, not only the ones renewing
        monthly_total=format_currency(monthly_total(user.subscriptions)),
    )


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" + ("" if n == 1 else "s")


def render_subject(n: ReminderNotification) -> str:
    return f"Subscription Renewal Reminder - {_plural(n.count, 'subscription')} renewing soon"


def render_text(n: ReminderNotification) -> str:
    greeting = f"Hi {n.recipient_name}," if n.recipient_name else "Hi,"
    lines = [
        greeting,
        "",
        f"You have {_plural(n.count, 'subscription')} renewing in the next 7 days:",
        "",
    ]
    for item in n.items:
        lines.append(f"• {item.name} - {item.formatted_price} ({_plural(item.days_until, 'day')})")
    lines += [
        "",
        f"Monthly Total: {n.monthly_total}",
        "",
        f"Manage your subscriptions at {config.DASHBOARD_URL}",
    ]
    return "\n".join(lines)


def render_html(n: ReminderNotification) -> str:
    name = f" {html.escape(n.recipient_name)}" if n.recipient_name else ""
    noun = "subscription" if n.count == 1 else "subscriptions"
    rows = "".join(
        f'<div class="subscription"><span class="subscription-name">{html.escape(item.name)}</span> - '
        f'{html.escape(item.formatted_price)} '
        f'<span class="subscription-days">({_plural(item.days_until, "day")})</span></div>'
        for item in n.items
    )
    return f"""<!DOCTYPE html>
<html>
  <head>
    <style>
      body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #f4f4f5; background-color: #0a0a0f; padding: 20px; }}
      .container {{ max-width: 600px; margin: 0 auto; background: #13131a; border-radius: 12px; padding: 30px; }}
      .logo {{ display: inline-block; background: #6366f1; padding: 10px 20px; border-radius: 8px; font-weight: bold; color: white; }}
      p {{ color: #71717a; margin: 10px 0; }}
      .subscriptions {{ background: #1a1a24; border-radius: 8px; padding: 20px; margin: 20px 0; }}
      .subscription {{ padding: 10px 0; border-bottom: 1px solid #27272a; }}
      .subscription-name {{ font-weight: 600; color: #f4f4f5; }}
      .subscription-days {{ color: #f59e0b; font-size: 14px; }}
      .total {{ font-size: 24px; font-weight: bold; color: #f4f4f5; margin-top: 20px; }}
      .footer a {{ color: #6366f1; text-decoration: none; }}
    </style>
  </head>
  <body>
    <div class="container">
      <span class="logo">SubTrack</span>
      <h1>Subscription Renewal Reminder</h1>
      <p>Hi{name},</p>
      <p>You have <strong>{n.count}</strong> {noun} renewing in the next 7 days:</p>
      <div class="subscriptions">{rows}</div>
      <p class="total">Monthly Total: {html.escape(n.monthly_total)}</p>
      <div class="footer">
        <p>Manage your subscriptions at <a href="{html.escape(config.DASHBOARD_URL)}">SubTrack Dashboard</a></p>
      </div>
    </div>
  </body>
</html>
"""


# ── Same-day dedup ledger (opt-in) ────────────────────────────────────────────
class SentLedger:
    """
    Remembers which users were emailed on which day, so overlapping sweeps on
    the same day don't email anyone twice. Stored as {"<day>_<user id>": "<day>"}.
    """

    def __init__(self, filepath: Path):
        self.filepath = Path(filepath)
        self._lock = threading.Lock()
        self._sent: dict = {}
        if self.filepath.exists():
            try:
                loaded = json.loads(self.filepath.read_text())
            except (json.JSONDecodeError, OSError) as exc:
                log.warning(f"Ignoring unreadable ledger {self.filepath}: {exc}")
            else:
                if isinstance(loaded, dict):
                    self._sent = loaded
                else:
                    log.warning(f"Ignoring ledger {self.filepath}: expected an object, got {type(loaded).__name__}")

    @staticmethod
    def _key(user_id: str, day: date) -> str:
        return f"{day.isoformat()}_{user_id}"

    def already_sent(self, user_id: str, day: date) -> bool:
        with self._lock:
            return self._key(user_id, day) in self._sent

    def record(self, user_id: str, day: date) -> None:
        with self._lock:
            self._sent[self._key(user_id, day)] = day.isoformat()
            # older days are never consulted again
            self._sent = {k: v for k, v in self._sent.items() if v == day.isoformat()}
            try:
                self.filepath.write_text(json.dumps(self._sent, indent=2))
            except OSError as exc:
                log.warning(f"Could not write ledger {self.filepath}: {exc}")


# ── Sweep ─────────────────────────────────────────────────────────────────────
def _remind_user(user: User, mailer: Mailer, today: date, ledger: Optional[SentLedger]) -> Optional[bool]:
    """None when the user is skipped, else whether the email went out."""
    try:
        notification = compose_reminder(user, today)
    except ValueError as exc:
        # e.g. a subscription stored with a malformed currency code
        log.error(f"Could not compose reminder for {user.email}: {exc}")
        return False
    if notification is None:
        return None
    if ledger is not None and ledger.already_sent(user.id, today):
        log.info(f"Reminder for {user.email} already sent today — skipping")
        return None
    try:
        ok = mailer.send(
            notification.to,
            render_subject(notification),
            render_html(notification),
            render_text(notification),
        )
    except Exception as exc:
        log.error(f"Failed to send reminder to {user.email}: {exc}")
        return False
    if not ok:
        log.warning(f"Reminder to {user.email} was not delivered")
        return False
    if ledger is not None:
        try:
            ledger.record(user.id, today)
        except Exception as exc:
            # the email already went out; count it and carry on
            log.error(f"Could not record reminder for {user.email} in ledger: {exc}")
    log.info(f"Reminder sent: {user.email} ({_plural(notification.count, 'subscription')})")
    return True


def run_reminder_sweep(
    store: SubscriptionStore,
    mailer: Mailer,
    today: date,
    max_workers: int = 1,
    ledger: Optional[SentLedger] = None,
) -> SweepResult:
    """Run one sweep over every user. Only a failed fetch fails the sweep."""
    try:
        users = store.find_all_users_with_subscriptions()
    except Exception as exc:
        log.error(f"Reminder sweep failed: could not load users: {exc}")
        return SweepResult(success=False, error=str(exc))

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(lambda u: _remind_user(u, mailer, today, ledger), users))
    else:
        outcomes = [_remind_user(u, mailer, today, ledger) for u in users]

    result = SweepResult(
        success=True,
        emails_sent=sum(1 for o in outcomes if o is True),
        skipped=sum(1 for o in outcomes if o is None),
        failed=sum(1 for o in outcomes if o is False),
    )
    log.info(
        f"Reminder sweep done — {result.emails_sent} sent, "
        f"{result.failed} failed, {result.skipped} skipped ({len(users)} users)"
    )
    return result


# ── Guarded entry point ───────────────────────────────────────────────────────
def is_authorized(authorization: Optional[str], secret: str) -> bool:
    """True only for "Bearer <secret>" with a non-empty configured secret."""
    if not secret or not authorization:
        return False
    return secrets.compare_digest(authorization.encode(), f"Bearer {secret}".encode())


def trigger_sweep(
    authorization: Optional[str],
    secret: str,
    store: SubscriptionStore,
    mailer: Mailer,
    today: date,
    max_workers: int = 1,
    ledger: Optional[SentLedger] = None,
) -> SweepResult:
    """Check the caller's credential, then run one sweep."""
    if not is_authorized(authorization, secret):
        log.warning("Reminder sweep rejected: bad or missing credential")
        raise TriggerUnauthorized("Unauthorized")
    return run_reminder_sweep(store, mailer, today, max_workers=max_workers, ledger=ledger)


def default_ledger() -> Optional[SentLedger]:
    if not config.REMINDER_DEDUP:
        return None
    return SentLedger(config.DATA_DIR / "sent_reminders.json")
