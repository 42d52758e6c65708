"""Backup the ledger (users + attendance records) to a JSON file.

Note: Works with every storage backend since it goes through the LedgerStore interface.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from faceauth_station.container import build_ledger
from faceauth_station.main import load_settings


def main() -> None:
    ledger = build_ledger(load_settings())

    out_dir = Path.cwd() / "backups"
    out_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = out_dir / f"faceauth_{ts}.json"

    payload = {
        "users": [u.to_dict() for u in ledger.list_users()],
        "records": [r.to_dict() for r in ledger.list_records()],
    }
    out_file.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    print(f"OK: Backup created: {out_file} ({len(payload['users'])} users, {len(payload['records'])} records)")


if __name__ == "__main__":
    main()
