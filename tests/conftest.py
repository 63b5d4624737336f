"""Shared fixtures for SubTrack tests."""

from datetime import date, datetime, timedelta, timezone

import pytest

from models import Subscription, User
from storage import JsonlStore

TODAY = date(2026, 10, 19)


class RecordingMailer:
    """Mailer double: records every send, optionally failing for some recipients."""

    def __init__(self, fail_for=(), raise_for=()):
        self.sent = []
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)

    def send(self, to, subject, html, text=None):
        if to in self.raise_for:
            raise ConnectionError(f"mail relay refused {to}")
        if to in self.fail_for:
            return False
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return True


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_sub():
    counter = {"n": 0}

    def _make(name="Netflix", price=9.99, cycle="monthly", days=3, user_id="u1",
              currency="USD", category="entertainment", created_offset=0, **kw):
        counter["n"] += 1
        return Subscription(
            id=kw.pop("id", f"sub{counter['n']}"),
            user_id=user_id,
            name=name,
            price=price,
            currency=currency,
            billing_cycle=cycle,
            category=category,
            next_billing_date=TODAY + timedelta(days=days),
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(days=created_offset),
            **kw,
        )

    return _make


@pytest.fixture
def make_user():
    def _make(subscriptions, email="ada@example.com", name="Ada", user_id="u1"):
        return User(id=user_id, external_id=f"ext_{user_id}", email=email, name=name,
                    subscriptions=subscriptions)

    return _make


@pytest.fixture
def store(tmp_path):
    return JsonlStore(tmp_path)


@pytest.fixture
def mailer():
    return RecordingMailer()
