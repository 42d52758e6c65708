from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Protocol, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..core.constants import ATTENDANCE_KEY, USERS_KEY
from ..users.model import User
from ..users.repository import UserRepository
from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class LedgerStore(UserRepository, AttendanceRepository, Protocol):
    """Users registry plus the attendance ledger, cleared together."""

    def clear_all(self) -> None:
        raise NotImplementedError


def latest_of(records: Sequence[AttendanceRecord]) -> Optional[AttendanceRecord]:
    """Newest record by timestamp; insertion order is not trusted."""
    if not records:
        return None
    return max(records, key=lambda r: r.timestamp)


class KeyValueLedgerStore(LedgerStore):
    """Ledger kept as two JSON lists under fixed keys of a key-value store."""

    def __init__(self, kv: KeyValueStore, *, users_key: str = USERS_KEY, records_key: str = ATTENDANCE_KEY):
        self._kv = kv
        self._users_key = users_key
        self._records_key = records_key
        # Read-modify-write on a list needs to be serialized.
        self._lock = threading.RLock()

    def _load_list(self, key: str) -> list[dict[str, Any]]:
        data = self._kv.get(key)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.error("Storage key %s does not hold a list, ignoring it", key)
            return []
        return data

    def list_users(self) -> Sequence[User]:
        with self._lock:
            return [User.from_dict(d) for d in self._load_list(self._users_key)]

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self.list_users():
            if user.user_id == user_id:
                return user
        return None

    def upsert_user(self, user: User) -> User:
        with self._lock:
            rows = self._load_list(self._users_key)
            for i, row in enumerate(rows):
                if str(row.get("employeeId")) == user.employee_id:
                    rows[i] = user.to_dict()
                    break
            else:
                rows.append(user.to_dict())
            self._kv.set(self._users_key, rows)
        return user

    def delete_user(self, user_id: str) -> bool:
        with self._lock:
            rows = self._load_list(self._users_key)
            kept = [row for row in rows if str(row.get("id")) != user_id]
            if len(kept) == len(rows):
                return False
            self._kv.set(self._users_key, kept)
            return True

    def list_records(self) -> Sequence[AttendanceRecord]:
        with self._lock:
            return [AttendanceRecord.from_dict(d) for d in self._load_list(self._records_key)]

    def most_recent_record_for(self, user_id: str) -> Optional[AttendanceRecord]:
        return latest_of([r for r in self.list_records() if r.user_id == user_id])

    def append_record(self, record: AttendanceRecord) -> None:
        with self._lock:
            rows = self._load_list(self._records_key)
            rows.insert(0, record.to_dict())
            self._kv.set(self._records_key, rows)

    def clear_all(self) -> None:
        with self._lock:
            self._kv.remove(self._users_key)
            self._kv.remove(self._records_key)
