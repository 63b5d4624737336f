"""
models.py — SubTrack data models

Stored records (User, Subscription), API payloads, and the reminder sweep's
notification/result shapes.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(BaseModel):
    """
    A recurring charge owned by one user.

    billing_cycle and category are kept as plain strings: unknown values are
    tolerated and fall back to monthly maths and the "other" category.
    """

    id: str = Field(default_factory=_new_id)
    user_id: str
    name: str
    price: float
    currency: str = "USD"
    billing_cycle: str = "monthly"
    category: str = "other"
    next_billing_date: date
    notes: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # Naive timestamps would not compare with aware ones when sorting
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class User(BaseModel):
    id: str = Field(default_factory=_new_id)
    external_id: str
    email: str = ""
    name: Optional[str] = None
    subscriptions: list[Subscription] = Field(default_factory=list)


class SubscriptionIn(BaseModel):
    """Create/update payload accepted by the HTTP API."""

    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    currency: str = "USD"
    billing_cycle: str = "monthly"
    category: str = "other"
    next_billing_date: date
    notes: Optional[str] = None
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Service name is required.")
        return v

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return (v or "USD").strip().upper()


# ── Reminder sweep ────────────────────────────────────────────────────────────
class ReminderItem(BaseModel):
    name: str
    formatted_price: str
    days_until: int


class ReminderNotification(BaseModel):
    to: str
    recipient_name: Optional[str] = None
    items: list[ReminderItem]
    monthly_total: str

    @property
    def count(self) -> int:
        return len(self.items)


class SweepResult(BaseModel):
    success: bool
    emails_sent: int = 0
    skipped: int = 0
    failed: int = 0
    error: Optional[str] = None
