from __future__ import annotations

import importlib
import logging
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .history.controller import register as register_history
from .registration.controller import register as register_registration

logger = logging.getLogger(__name__)

SETTING_KEYS = (
    "SECRET_KEY",
    "DEBUG",
    "TESTING",
    "LOG_LEVEL",
    "STORAGE_BACKEND",
    "DATA_FILE",
    "DB_CONFIG",
    "AUTO_INIT_DB",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_API_URL",
    "GEMINI_TIMEOUT_SECONDS",
    "MAX_CANDIDATES",
    "SUCCESS_RETURN_SECONDS",
)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def load_settings(overrides: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    values = {key: getattr(settings, key) for key in SETTING_KEYS if hasattr(settings, key)}
    values["SETTINGS_MODULE"] = settings_module
    values.update(overrides or {})
    return values


def create_app(
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    container: Optional[Container] = None,
) -> Flask:
    load_dotenv(override=False)
    settings = load_settings(overrides)
    configure_logging(settings.get("LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = settings.get("SECRET_KEY")
    app.config.update(settings)
    app.config["DEBUG"] = bool(settings.get("DEBUG", False))

    logger.info(
        "Starting FaceAuth Station (settings=%s, storage=%s)",
        settings["SETTINGS_MODULE"],
        settings.get("STORAGE_BACKEND"),
    )

    container = container or build_container(settings=settings)
    app.extensions["faceauth"] = container

    @app.get("/api/health")
    def health():
        return jsonify({"success": True, "status": "ok"})

    register_attendance(app, container)
    register_registration(app, container)
    register_history(app, container)

    return app
