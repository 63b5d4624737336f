"""
billing.py — Billing maths and catalogues

Normalises a price + billing cycle into monthly/yearly amounts, formats money,
and holds the category / billing cycle / currency catalogues shown in forms.
"""

import re
from dataclasses import dataclass
from enum import Enum

WEEKS_PER_MONTH = 4.33
WEEKS_PER_YEAR  = 52
MONTHS_PER_YEAR = 12


class BillingCycle(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def monthly_amount(price: float, billing_cycle: str) -> float:
    """Price per month for one billing cycle's charge."""
    if billing_cycle == BillingCycle.WEEKLY:
        return price * WEEKS_PER_MONTH
    if billing_cycle == BillingCycle.YEARLY:
        return price / MONTHS_PER_YEAR
    # monthly, and any cycle we don't recognise, is billed as-is
    return price


def yearly_amount(price: float, billing_cycle: str) -> float:
    """Price per year for one billing cycle's charge."""
    if billing_cycle == BillingCycle.WEEKLY:
        return price * WEEKS_PER_YEAR
    if billing_cycle == BillingCycle.MONTHLY:
        return price * MONTHS_PER_YEAR
    # yearly, and any cycle we don't recognise, is billed as-is
    return price


# ── Categories ────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Category:
    value: str
    label: str
    color: str


OTHER = Category("other", "Other", "#71717a")

CATEGORIES: tuple[Category, ...] = (
    Category("entertainment", "Entertainment", "#ef4444"),
    Category("productivity", "Productivity", "#6366f1"),
    Category("health", "Health", "#10b981"),
    Category("finance", "Finance", "#f59e0b"),
    OTHER,
)

_CATEGORY_BY_VALUE = {c.value: c for c in CATEGORIES}


def get_category(value: str) -> Category:
    """Look up a category; anything unknown is "Other"."""
    return _CATEGORY_BY_VALUE.get(value, OTHER)


def subscription_color(sub) -> str:
    """The colour a subscription is drawn in: its own override, else its category's."""
    return sub.color or get_category(sub.category).color


# ── Currency ──────────────────────────────────────────────────────────────────
CURRENCIES = ["USD", "EUR", "GBP"]
CURRENCY_SYMBOLS = {"USD": "$", "GBP": "£", "EUR": "€"}

_CURRENCY_CODE = re.compile(r"^[A-Za-z]{3}$")


def format_currency(amount: float, currency: str = "USD") -> str:
    """
    Render an amount the way an en-US currency formatter does, e.g. $1,234.50.

    Codes without a known symbol are written out ("CHF 12.00").
    Raises ValueError for anything that isn't a three-letter code.
    """
    if not isinstance(currency, str) or not _CURRENCY_CODE.match(currency):
        raise ValueError(f"Invalid currency code: {currency!r}")
    code = currency.upper()
    sym = CURRENCY_SYMBOLS.get(code, code + " ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{sym}{abs(amount):,.2f}"


def catalogue() -> dict:
    """Options offered by the subscription form."""
    return {
        "categories": [{"value": c.value, "label": c.label, "color": c.color} for c in CATEGORIES],
        "billing_cycles": [{"value": b.value, "label": b.label} for b in BillingCycle],
        "currencies": [{"value": c, "label": c} for c in CURRENCIES],
    }
