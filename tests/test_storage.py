"""Tests for the JSON-lines store."""

from datetime import date

import pytest

from models import SubscriptionIn
from storage import JsonlStore, StorageError


def _payload(**kw):
    data = {"name": "Netflix", "price": 15.49, "next_billing_date": date(2026, 10, 21)}
    data.update(kw)
    return SubscriptionIn(**data)


class TestUsers:

    def test_upsert_creates_then_updates(self, store):
        created = store.upsert_user("ext_1", "a@example.com", "Ada")
        updated = store.upsert_user("ext_1", "ada@example.com", "Ada L")
        assert created.id == updated.id
        found = store.get_user_by_external_id("ext_1")
        assert found.email == "ada@example.com"
        assert found.name == "Ada L"

    def test_unknown_user(self, store):
        assert store.get_user_by_external_id("nobody") is None

    def test_delete_user_removes_subscriptions(self, store):
        user = store.upsert_user("ext_1", "a@example.com", None)
        other = store.upsert_user("ext_2", "b@example.com", None)
        store.create_subscription(user.id, _payload())
        store.create_subscription(other.id, _payload(name="Gym"))

        assert store.delete_user("ext_1")
        assert store.get_user_by_external_id("ext_1") is None
        assert [s.name for s in store.list_subscriptions(other.id)] == ["Gym"]
        assert store.list_subscriptions(user.id) == []

    def test_delete_unknown_user(self, store):
        assert store.delete_user("ghost") is False


class TestSubscriptions:

    def test_create_and_get(self, store):
        user = store.upsert_user("ext_1", "a@example.com", None)
        sub = store.create_subscription(user.id, _payload(currency="eur"))
        fetched = store.get_subscription(user.id, sub.id)
        assert fetched.name == "Netflix"
        assert fetched.currency == "EUR"
        assert fetched.next_billing_date == date(2026, 10, 21)

    def test_get_is_owner_scoped(self, store):
        user = store.upsert_user("ext_1", "a@example.com", None)
        sub = store.create_subscription(user.id, _payload())
        assert store.get_subscription("someone-else", sub.id) is None

    def test_update(self, store):
        user = store.upsert_user("ext_1", "a@example.com", None)
        sub = store.create_subscription(user.id, _payload())
        assert store.update_subscription(user.id, sub.id, _payload(price=17.99, billing_cycle="yearly"))
        fetched = store.get_subscription(user.id, sub.id)
        assert fetched.price == 17.99
        assert fetched.billing_cycle == "yearly"
        assert fetched.created_at == sub.created_at
        assert fetched.updated_at >= sub.updated_at

    def test_update_missing(self, store):
        assert store.update_subscription("u", "missing", _payload()) is False

    def test_delete(self, store):
        user = store.upsert_user("ext_1", "a@example.com", None)
        sub = store.create_subscription(user.id, _payload())
        assert store.delete_subscription(user.id, sub.id)
        assert store.delete_subscription(user.id, sub.id) is False

    def test_find_all_users_with_subscriptions(self, store):
        a = store.upsert_user("ext_a", "a@example.com", None)
        b = store.upsert_user("ext_b", "", None)
        store.create_subscription(a.id, _payload(name="One"))
        store.create_subscription(a.id, _payload(name="Two"))

        users = {u.external_id: u for u in store.find_all_users_with_subscriptions()}
        assert [s.name for s in users["ext_a"].subscriptions] == ["One", "Two"]
        assert users["ext_b"].subscriptions == []
        assert b.id == users["ext_b"].id

    def test_empty_store(self, store):
        assert store.find_all_users_with_subscriptions() == []

    def test_bad_lines_are_skipped(self, store, tmp_path):
        user = store.upsert_user("ext_1", "a@example.com", None)
        store.create_subscription(user.id, _payload())
        with (tmp_path / "subscriptions.jsonl").open("a") as f:
            f.write("{not json\n")
            f.write('{"name": "missing fields"}\n')
        assert len(store.list_subscriptions(user.id)) == 1

    def test_unreadable_directory_raises(self, tmp_path):
        (tmp_path / "users.jsonl").mkdir()
        with pytest.raises(StorageError):
            JsonlStore(tmp_path).find_all_users_with_subscriptions()
