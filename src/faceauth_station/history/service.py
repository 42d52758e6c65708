from __future__ import annotations

import logging
from typing import Optional

from ..core.enums import PunchType
from ..storage.ledger import LedgerStore

logger = logging.getLogger(__name__)


class HistoryService:
    """Use case: attendance log view and full reset."""

    def __init__(self, ledger: LedgerStore):
        self._ledger = ledger

    def list_records_ui(self, *, user_id: Optional[str] = None, limit: Optional[int] = None) -> list[dict]:
        rows = self._ledger.list_records()
        if user_id:
            rows = [r for r in rows if r.user_id == user_id]
        if limit is not None:
            rows = rows[: max(0, int(limit))]
        return [self._to_ui(r) for r in rows]

    def reset(self) -> None:
        self._ledger.clear_all()
        logger.warning("All users and attendance records cleared")

    def _to_ui(self, r) -> dict:
        data = r.to_dict()
        data["label"] = {PunchType.IN: "Checked in", PunchType.OUT: "Checked out"}[r.punch_type]
        data["time"] = r.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        return data
