from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import PunchType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_mysql_datetime, to_mysql_datetime
from ..users.model import User
from .ledger import LedgerStore

_USER_COLUMNS = "user_id, employee_id, name, department, face_image, registered_at"
_RECORD_COLUMNS = "record_id, user_id, user_name, recorded_at, punch_type, confidence, method"


def _row_to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=str(row["user_id"]),
        employee_id=str(row["employee_id"]),
        name=row["name"],
        department=row.get("department") or "",
        face_image=row.get("face_image") or "",
        registered_at=from_mysql_datetime(row["registered_at"]),
    )


def _row_to_record(row: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=str(row["record_id"]),
        user_id=str(row["user_id"]),
        user_name=row["user_name"],
        timestamp=from_mysql_datetime(row["recorded_at"]),
        punch_type=PunchType(row["punch_type"]),
        confidence=float(row["confidence"]),
        method=row["method"],
    )


class MySQLLedgerStore(LedgerStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_users(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY position ASC")
            return [_row_to_user(r) for r in fetchall(cur)]

    def get_user(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def upsert_user(self, user: User) -> User:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO users({_USER_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    user_id=VALUES(user_id),
                    name=VALUES(name),
                    department=VALUES(department),
                    face_image=VALUES(face_image),
                    registered_at=VALUES(registered_at)
                """,
                (
                    user.user_id,
                    user.employee_id,
                    user.name,
                    user.department,
                    user.face_image,
                    to_mysql_datetime(user.registered_at),
                ),
            )
        return user

    def delete_user(self, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (user_id,))
            return cur.rowcount > 0

    def list_records(self) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance_records ORDER BY recorded_at DESC")
            return [_row_to_record(r) for r in fetchall(cur)]

    def most_recent_record_for(self, user_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s
                ORDER BY recorded_at DESC
                LIMIT 1
                """,
                (user_id,),
            )
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def append_record(self, record: AttendanceRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO attendance_records({_RECORD_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.record_id,
                    record.user_id,
                    record.user_name,
                    to_mysql_datetime(record.timestamp),
                    record.punch_type.value,
                    float(record.confidence),
                    record.method,
                ),
            )

    def clear_all(self) -> None:
        # Both deletes share one transaction.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records")
            cur.execute("DELETE FROM users")
