"""Standardised API error responses.

Usage
-----
    from app.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Appointment not found")
    return api_error(E.VALIDATION_REQUIRED, "title is required")
    return api_error(E.COLLABORATOR, "messaging: timeout", details={"phone": "905..."})
"""

from __future__ import annotations

from flask import jsonify

# Where a not-found lifecycle view sends the user back to.
OPERATIONS_LIST_PATH = "/api/v1/operations"


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Validation – HTTP 422
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Collaborator (catalog, documents, messaging) – HTTP 502
    COLLABORATOR = "ERR_COLLABORATOR"

    # Rate limit – HTTP 429
    RATE_LIMITED = "ERR_RATE_LIMITED"

    # Server – HTTP 500
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 422,
    E.VALIDATION_INVALID: 422,
    E.NOT_FOUND: 404,
    E.COLLABORATOR: 502,
    E.RATE_LIMITED: 429,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
    **extra,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for developers / UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Field-level breakdown (missing fields, offending values).
    **extra
        Additional top-level keys, e.g. ``back`` for not-found views.

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details
    body.update(extra)

    return jsonify(body), http_status


def register_error_handlers(bp, logger) -> None:
    """Attach the core exception handlers to a blueprint.

    NotFoundError → 404 (unknown appointments link back to the list),
    ValidationError → 422, CollaboratorError → 502, anything else → 500.
    """
    from app.core.exceptions import CollaboratorError, NotFoundError, ValidationError

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        if error.resource == "Appointment":
            return api_error(E.NOT_FOUND, str(error), back=OPERATIONS_LIST_PATH)
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(CollaboratorError)
    def _handle_collaborator(error: CollaboratorError):
        logger.warning("Collaborator failure: %s", error)
        return api_error(E.COLLABORATOR, str(error))

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        from flask import request
        from werkzeug.exceptions import HTTPException

        if isinstance(error, HTTPException):
            return error
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
