"""
Platform-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and get consistent HTTP status codes everywhere.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Appointment", resource_id="a1b2")
    raise ValidationError("Title is required", details={"title": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested record does not exist.

    Maps to HTTP 404. Lifecycle views treat it as a terminal display state
    that offers navigation back to the list.

    Args:
        resource: Human-readable entity name (e.g. "Appointment", "Company").
        resource_id: The identity that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails business-rule validation in the service layer.

    Covers missing required fields at confirm/edit, an empty recipient set at
    bulk notify, missing name/plate at vehicle registration and illegal
    wizard transitions. The operation is aborted with no partial mutation.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class CollaboratorError(Exception):
    """Raised when an external collaborator call fails.

    Catalog writes, document generation and message dispatch. No automatic
    retry is attempted; state stays as it was before the call.

    Maps to HTTP 502.

    Args:
        collaborator: Which collaborator failed ("catalog", "documents", "messaging").
        message: Underlying failure description.
    """

    def __init__(self, collaborator: str, message: str) -> None:
        self.collaborator = collaborator
        super().__init__(f"{collaborator}: {message}")
