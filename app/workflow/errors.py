"""Error taxonomy of the document review workflow.

Validation errors are raised before any store call is made. Transport errors
come from a record store and carry a retry hint so callers can tell a
re-authentication apart from a wait-and-retry or a not-found that is safe to
read as "pending".
"""
from typing import Optional


class WorkflowError(Exception):
    code = "workflow_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WorkflowError):
    code = "validation_error"


class InvalidFileType(ValidationError):
    code = "invalid_file_type"

    def __init__(self, content_type: Optional[str], allowed):
        self.content_type = content_type
        self.allowed = tuple(sorted(allowed))
        super().__init__(
            f"File type {content_type or 'unknown'} not allowed. Allowed types: {', '.join(self.allowed)}"
        )


class FileTooLarge(ValidationError):
    code = "file_too_large"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"File size {size} exceeds limit of {limit} bytes")


class EmptyFile(ValidationError):
    code = "empty_file"

    def __init__(self):
        super().__init__("Empty file uploaded")


class MissingRemarks(ValidationError):
    code = "missing_remarks"

    def __init__(self):
        super().__init__("Remarks are required when rejecting a document")


class IllegalTransition(WorkflowError):
    code = "illegal_transition"

    def __init__(self, current, event: str):
        self.current = current
        self.event = event
        current_value = getattr(current, "value", current)
        super().__init__(f"Cannot {event} a document that is {current_value}")


class PermissionDenied(WorkflowError):
    code = "permission_denied"


class TransportError(Exception):
    code = "transport_error"
    retry_hint = "none"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class Unauthorized(TransportError):
    code = "unauthorized"
    retry_hint = "reauthenticate"


class Forbidden(TransportError):
    code = "forbidden"
    retry_hint = "none"


class NotFound(TransportError):
    code = "not_found"
    retry_hint = "ignore"


class ServerUnavailable(TransportError):
    code = "server_unavailable"
    retry_hint = "wait"


class UnknownTransportError(TransportError):
    code = "unknown"
