"""
storage.py — User and subscription storage

SubscriptionStore is what the rest of the app talks to. JsonlStore keeps
users.jsonl and subscriptions.jsonl in a data directory; unreadable lines are
skipped on load.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from models import Subscription, SubscriptionIn, User

log = logging.getLogger(__name__)


class StorageError(Exception):
    """The backing store could not be read or written."""


class SubscriptionStore(ABC):

    @abstractmethod
    def find_all_users_with_subscriptions(self) -> list[User]:
        """Every user, each carrying its full subscription list."""

    @abstractmethod
    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def upsert_user(self, external_id: str, email: str, name: Optional[str]) -> User:
        ...

    @abstractmethod
    def delete_user(self, external_id: str) -> bool:
        """Remove a user and their subscriptions. False if there was no such user."""

    @abstractmethod
    def list_subscriptions(self, user_id: str) -> list[Subscription]:
        ...

    @abstractmethod
    def get_subscription(self, user_id: str, sub_id: str) -> Optional[Subscription]:
        ...

    @abstractmethod
    def create_subscription(self, user_id: str, data: SubscriptionIn) -> Subscription:
        ...

    @abstractmethod
    def update_subscription(self, user_id: str, sub_id: str, data: SubscriptionIn) -> bool:
        ...

    @abstractmethod
    def delete_subscription(self, user_id: str, sub_id: str) -> bool:
        ...


class JsonlStore(SubscriptionStore):
    """Two JSON-lines files, rewritten in full on every change."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.users_file = self.data_dir / "users.jsonl"
        self.subs_file = self.data_dir / "subscriptions.jsonl"
        self._lock = threading.Lock()

    # ── File helpers ──────────────────────────────────────────────────────────
    def _load(self, filepath: Path, model):
        records = []
        if not filepath.exists():
            return records
        try:
            with filepath.open() as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        records.append(model.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as exc:
                        log.warning(f"Skipping bad record in {filepath.name}: {exc}")
        except OSError as exc:
            raise StorageError(f"Could not read {filepath}: {exc}") from exc
        return records

    def _save(self, filepath: Path, records: list) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp = filepath.with_suffix(".tmp")
            with tmp.open("w") as f:
                for r in records:
                    f.write(json.dumps(r.model_dump(mode="json", exclude={"subscriptions"})) + "\n")
            tmp.replace(filepath)
        except OSError as exc:
            raise StorageError(f"Could not write {filepath}: {exc}") from exc

    def _users(self) -> list[User]:
        return self._load(self.users_file, User)

    def _subs(self) -> list[Subscription]:
        return self._load(self.subs_file, Subscription)

    # ── Reads ─────────────────────────────────────────────────────────────────
    def find_all_users_with_subscriptions(self) -> list[User]:
        with self._lock:
            users = self._users()
            subs = self._subs()
        by_user: dict[str, list[Subscription]] = {}
        for s in subs:
            by_user.setdefault(s.user_id, []).append(s)
        for u in users:
            u.subscriptions = by_user.get(u.id, [])
        return users

    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        with self._lock:
            for u in self._users():
                if u.external_id == external_id:
                    return u
        return None

    def list_subscriptions(self, user_id: str) -> list[Subscription]:
        with self._lock:
            return [s for s in self._subs() if s.user_id == user_id]

    def get_subscription(self, user_id: str, sub_id: str) -> Optional[Subscription]:
        with self._lock:
            for s in self._subs():
                if s.id == sub_id and s.user_id == user_id:
                    return s
        return None

    # ── Writes ────────────────────────────────────────────────────────────────
    def upsert_user(self, external_id: str, email: str, name: Optional[str]) -> User:
        with self._lock:
            users = self._users()
            for u in users:
                if u.external_id == external_id:
                    u.email = email
                    u.name = name
                    break
            else:
                u = User(external_id=external_id, email=email, name=name)
                users.append(u)
            self._save(self.users_file, users)
        return u

    def delete_user(self, external_id: str) -> bool:
        with self._lock:
            users = self._users()
            gone = [u for u in users if u.external_id == external_id]
            if not gone:
                return False
            gone_ids = {u.id for u in gone}
            self._save(self.users_file, [u for u in users if u.id not in gone_ids])
            self._save(self.subs_file, [s for s in self._subs() if s.user_id not in gone_ids])
        return True

    def create_subscription(self, user_id: str, data: SubscriptionIn) -> Subscription:
        sub = Subscription(user_id=user_id, **data.model_dump())
        with self._lock:
            subs = self._subs()
            subs.append(sub)
            self._save(self.subs_file, subs)
        return sub

    def update_subscription(self, user_id: str, sub_id: str, data: SubscriptionIn) -> bool:
        with self._lock:
            subs = self._subs()
            for i, s in enumerate(subs):
                if s.id == sub_id and s.user_id == user_id:
                    subs[i] = s.model_copy(update={
                        **data.model_dump(),
                        "updated_at": datetime.now(timezone.utc),
                    })
                    self._save(self.subs_file, subs)
                    return True
        return False

    def delete_subscription(self, user_id: str, sub_id: str) -> bool:
        with self._lock:
            subs = self._subs()
            kept = [s for s in subs if not (s.id == sub_id and s.user_id == user_id)]
            if len(kept) == len(subs):
                return False
            self._save(self.subs_file, kept)
        return True
