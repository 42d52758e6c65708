from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import jsonify, request

from ..core.exceptions import InvalidTransitionError, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def ok(**payload):
    return jsonify({"success": True, **payload}), 200


def fail(message: str, status: int, **payload):
    return jsonify({"success": False, "message": message, **payload}), status


def json_errors(view):
    """Map domain errors of a JSON endpoint to status codes."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return fail(str(e), 400)
        except NotFoundError as e:
            return fail(str(e), 404)
        except InvalidTransitionError as e:
            return fail(str(e), 409)
        except StorageError as e:
            logger.error("Storage failure in %s: %s", request.path, e)
            return fail(str(e), 500)
        except Exception:
            logger.exception("Unhandled error in %s", request.path)
            return fail("Internal error", 500)

    return wrapper
