from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..core.exceptions import ConfigurationError, DeviceError, SettingsConflictError, ValidationError

logger = logging.getLogger(__name__)

COMPANY_HEADER = "X-Company-Id"


def ok(payload: dict, status: int = 200):
    body = {"success": True}
    body.update(payload)
    return jsonify(body), status


def fail(message: str, error: str, status: int):
    return jsonify({"success": False, "message": message, "error": error}), status


def current_company_id() -> str:
    company_id = request.headers.get(COMPANY_HEADER) or session.get("company_id")
    if not company_id or not str(company_id).strip():
        raise ValidationError(f"{COMPANY_HEADER} header is required")
    return str(company_id).strip()


def json_object_body() -> dict:
    """Optional JSON body; an absent body is empty, anything but an object is rejected."""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def json_errors(view):
    """Map the domain exception taxonomy onto JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return fail(str(e), "VALIDATION_ERROR", 400)
        except SettingsConflictError as e:
            return fail(str(e), "SETTINGS_CONFLICT", 409)
        except ConfigurationError as e:
            logger.error("Configuration error on %s: %s", request.path, e)
            return fail(str(e), "CONFIGURATION_ERROR", 500)
        except DeviceError as e:
            logger.error("Device error on %s: %s", request.path, e)
            return fail(str(e), e.code, 500)
        except Exception as e:
            logger.exception("Unhandled error on %s", request.path)
            return fail(str(e), "INTERNAL_ERROR", 500)

    return wrapper
