# mdm_management/errors.py

"""Error kinds surfaced by the management service.

Every failure path in the service ends in exactly one of these. The HTTP
layer only needs ``kind`` and ``status_code`` to render a response.
"""


class MDMError(Exception):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self):
        return {"error": self.kind, "message": self.message}


class InvalidInput(MDMError):
    """Malformed identifier or request body. Never retried."""
    kind = "invalid_input"
    status_code = 400


class NotFound(MDMError):
    kind = "not_found"
    status_code = 404


class Conflict(MDMError):
    """A uniqueness constraint rejected the write."""
    kind = "conflict"
    status_code = 409


class ExternalServiceError(MDMError):
    """The enrollment program failed or timed out. Safe to retry with backoff."""
    kind = "external_service_error"
    status_code = 502


class Unavailable(MDMError):
    """A required collaborator is not configured for this deployment."""
    kind = "unavailable"
    status_code = 503


class InternalError(MDMError):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message="internal server error"):
        super().__init__(message)
