"""
analyzer.py — Subscription Dashboard Analyzer

Folds one user's subscriptions into the figures the dashboard shows:
monthly and yearly spend, renewals coming up in the next week, the most
recently added subscriptions, and spend per category.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Iterable

from billing import get_category, monthly_amount, subscription_color, yearly_amount
from models import Subscription
from renewal import DASHBOARD_WINDOW, days_until_renewal, within_window

log = logging.getLogger(__name__)

DASHBOARD_LIST_LIMIT = 5


# ── Totals ────────────────────────────────────────────────────────────────────
def monthly_total(subscriptions: Iterable[Subscription]) -> float:
    return sum(monthly_amount(s.price, s.billing_cycle) for s in subscriptions)


def yearly_total(subscriptions: Iterable[Subscription]) -> float:
    return sum(yearly_amount(s.price, s.billing_cycle) for s in subscriptions)


# ── Lists ─────────────────────────────────────────────────────────────────────
def upcoming_renewals(
    subscriptions: list[Subscription],
    today: date,
    limit: int = DASHBOARD_LIST_LIMIT,
) -> list[Subscription]:
    """Subscriptions renewing between today and a week out, soonest first."""
    first_day, last_day = DASHBOARD_WINDOW
    upcoming = [
        s for s in subscriptions
        if within_window(days_until_renewal(s.next_billing_date, today), first_day, last_day)
    ]
    upcoming.sort(key=lambda s: s.next_billing_date)
    return upcoming[:limit]


def recent_subscriptions(
    subscriptions: list[Subscription],
    limit: int = DASHBOARD_LIST_LIMIT,
) -> list[Subscription]:
    """Newest first; equal timestamps keep their stored order."""
    return sorted(subscriptions, key=lambda s: s.created_at, reverse=True)[:limit]


def category_breakdown(subscriptions: Iterable[Subscription]) -> list[dict]:
    """Monthly spend per category, biggest first."""
    cat_spend: dict[str, float] = defaultdict(float)
    for s in subscriptions:
        cat_spend[get_category(s.category).value] += monthly_amount(s.price, s.billing_cycle)
    return sorted(
        [
            {
                "category": cat,
                "label": get_category(cat).label,
                "color": get_category(cat).color,
                "monthly_cost": round(amt, 2),
            }
            for cat, amt in cat_spend.items()
        ],
        key=lambda x: -x["monthly_cost"],
    )


# ── Dashboard entry point ─────────────────────────────────────────────────────
def _card(sub: Subscription, today: date) -> dict:
    card = sub.model_dump(mode="json")
    card["color"] = subscription_color(sub)
    card["days_until"] = days_until_renewal(sub.next_billing_date, today)
    card["monthly_cost"] = round(monthly_amount(sub.price, sub.billing_cycle), 2)
    return card


def build_dashboard(subscriptions: list[Subscription], today: date) -> dict:
    """
    Build the dashboard report for one user.

    Report structure:
    {
        "generated_at": "...",
        "today": "YYYY-MM-DD",
        "subscription_count": N,
        "monthly_total": X.XX,
        "yearly_total": X.XX,
        "upcoming_renewals": [...],     # due in 0-7 days, at most 5
        "recent_subscriptions": [...],  # newest first, at most 5
        "category_breakdown": [...],
    }
    """
    monthly = monthly_total(subscriptions)
    yearly = yearly_total(subscriptions)
    upcoming = upcoming_renewals(subscriptions, today)
    recent = recent_subscriptions(subscriptions)

    report = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "today": today.isoformat(),
        "subscription_count": len(subscriptions),
        "monthly_total": round(monthly, 2),
        "yearly_total": round(yearly, 2),
        "upcoming_renewals": [_card(s, today) for s in upcoming],
        "recent_subscriptions": [_card(s, today) for s in recent],
        "category_breakdown": category_breakdown(subscriptions),
    }

    log.debug(
        f"Dashboard built: {len(subscriptions)} subscriptions | "
        f"{monthly:.2f}/mo | {len(upcoming)} renewals this week"
    )
    return report
