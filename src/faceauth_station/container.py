from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .attendance.factory import PunchRuleFactory
from .attendance.workflow import AttendanceWorkflow
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DatabaseConnection, DBConfig
from .history.service import HistoryService
from .registration.workflow import RegistrationWorkflow
from .storage.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore
from .storage.ledger import KeyValueLedgerStore, LedgerStore
from .storage.mysql_ledger import MySQLLedgerStore
from .users.service import UserService
from .verification.gateway import ImageValidator, Verifier
from .verification.gemini_client import GeminiClient, GeminiVerifier

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "database" / "schema.sql"


@dataclass(frozen=True)
class Container:
    ledger: LedgerStore
    verifier: Verifier
    validator: ImageValidator

    attendance_workflow: AttendanceWorkflow
    registration_workflow: RegistrationWorkflow
    user_service: UserService
    history_service: HistoryService


def build_ledger(settings: Mapping[str, Any]) -> LedgerStore:
    backend = str(settings.get("STORAGE_BACKEND", "json")).lower()

    if backend == "memory":
        return KeyValueLedgerStore(InMemoryKeyValueStore())

    if backend == "json":
        path = settings.get("DATA_FILE") or "instance/faceauth_data.json"
        logger.info("Using JSON ledger at %s", path)
        return KeyValueLedgerStore(JsonFileKeyValueStore(path))

    if backend == "mysql":
        db_config = DBConfig.from_dict(dict(settings.get("DB_CONFIG") or {}))
        conn = DatabaseConnection.get_instance(db_config)
        if settings.get("AUTO_INIT_DB"):
            apply_schema(conn, database=db_config.database, schema_path=SCHEMA_PATH)
            logger.info("MySQL schema ready (tables=%d)", len(list_tables(conn)))
        return MySQLLedgerStore(conn)

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")


def build_gemini_verifier(settings: Mapping[str, Any]) -> GeminiVerifier:
    client = GeminiClient(
        settings.get("GEMINI_API_KEY"),
        model=str(settings.get("GEMINI_MODEL", "gemini-2.5-flash")),
        base_url=str(settings.get("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta")),
        timeout=float(settings.get("GEMINI_TIMEOUT_SECONDS", 30)),
    )
    if not client.has_api_key:
        logger.warning("GEMINI_API_KEY is not set; every verification will fail")
    return GeminiVerifier(client, max_candidates=int(settings.get("MAX_CANDIDATES", 40)))


def build_container(
    *,
    settings: Mapping[str, Any],
    ledger: Optional[LedgerStore] = None,
    verifier: Optional[Verifier] = None,
    validator: Optional[ImageValidator] = None,
) -> Container:
    """Wire the kiosk. ``ledger``/``verifier``/``validator`` override the configured ones (tests)."""

    ledger = ledger or build_ledger(settings)
    if verifier is None or validator is None:
        gemini = build_gemini_verifier(settings)
        verifier = verifier or gemini
        validator = validator or gemini

    attendance_workflow = AttendanceWorkflow(
        ledger,
        ledger,
        verifier,
        rule_factory=PunchRuleFactory(),
        success_return_seconds=float(settings.get("SUCCESS_RETURN_SECONDS", 3.5)),
    )
    registration_workflow = RegistrationWorkflow(ledger, validator)

    return Container(
        ledger=ledger,
        verifier=verifier,
        validator=validator,
        attendance_workflow=attendance_workflow,
        registration_workflow=registration_workflow,
        user_service=UserService(ledger),
        history_service=HistoryService(ledger),
    )
