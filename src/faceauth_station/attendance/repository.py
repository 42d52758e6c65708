from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def list_records(self) -> Sequence[AttendanceRecord]:
        """All records, newest first."""

        raise NotImplementedError

    def most_recent_record_for(self, user_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def append_record(self, record: AttendanceRecord) -> None:
        raise NotImplementedError
