"""
seed_test_data.py — writes realistic demo users and subscriptions.
Run this to try the dashboard and the reminder sweep without real sign-ups.
"""
import sys
from pathlib import Path
from datetime import date, timedelta

import config
from models import SubscriptionIn
from storage import JsonlStore

USERS = [
    # (external id, email, name)
    ("demo_ada",   "ada@example.com",   "Ada"),
    ("demo_grace", "grace@example.com", "Grace"),
    ("demo_noemail", "",                None),   # never emailed
]

SUBSCRIPTIONS = {
    # (name, price, currency, cycle, category, days until renewal)
    "demo_ada": [
        ("Netflix",     15.49, "USD", "monthly", "entertainment",  2),
        ("Spotify",      9.99, "USD", "monthly", "entertainment",  0),   # due today: dashboard only
        ("Notion",      96.00, "USD", "yearly",  "productivity",   5),
        ("Headspace",    4.99, "GBP", "weekly",  "health",         9),
        ("YNAB",        14.99, "USD", "monthly", "finance",       20),
    ],
    "demo_grace": [
        ("Adobe",       54.99, "EUR", "monthly", "productivity",   7),
        ("GitHub",       4.00, "USD", "monthly", "productivity",  -3),   # overdue
    ],
    "demo_noemail": [
        ("Duolingo",     6.99, "USD", "monthly", "other",          1),
    ],
}


def seed(store: JsonlStore, today: date) -> int:
    count = 0
    for external_id, email, name in USERS:
        user = store.upsert_user(external_id, email, name)
        # start the demo user from a clean slate on every run
        for old in store.list_subscriptions(user.id):
            store.delete_subscription(user.id, old.id)
        for sub_name, price, currency, cycle, category, days in SUBSCRIPTIONS[external_id]:
            store.create_subscription(user.id, SubscriptionIn(
                name=sub_name,
                price=price,
                currency=currency,
                billing_cycle=cycle,
                category=category,
                next_billing_date=today + timedelta(days=days),
            ))
            count += 1
    return count


if __name__ == "__main__":
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else config.DATA_DIR
    n = seed(JsonlStore(data_dir), date.today())
    print(f"Wrote {len(USERS)} users and {n} subscriptions to {data_dir}")
