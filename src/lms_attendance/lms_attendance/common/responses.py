from __future__ import annotations

import logging

from flask import jsonify

from ..core.exceptions import LockedError, NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def json_error(message: str, status: int, **extra):
    payload = {"success": False, "message": message}
    payload.update(extra)
    return jsonify(payload), status


def domain_error_response(exc: Exception):
    """Map service exceptions onto HTTP responses."""
    if isinstance(exc, LockedError):
        return json_error(str(exc), 423, lecture_id=exc.lecture_id)
    if isinstance(exc, NotFoundError):
        return json_error(str(exc), 404)
    if isinstance(exc, ValidationError):
        return json_error(str(exc), 400)
    if isinstance(exc, PersistenceError):
        return json_error(str(exc), 502)
    logger.exception("Unhandled error", exc_info=exc)
    return json_error("Internal error", 500)
