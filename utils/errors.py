from __future__ import annotations


class QRServiceError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(QRServiceError):
    status_code = 404
    default_message = "QR code not found"


class Unauthorized(QRServiceError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(QRServiceError):
    status_code = 403
    default_message = "Operator access required"


class Conflict(QRServiceError):
    status_code = 409
    default_message = "Conflict"


class ShortCodeExhausted(Conflict):
    default_message = "Failed to generate a unique short code"


class PlanLimitReached(Conflict):
    default_message = "Plan limit reached"


class AlreadyActive(Conflict):
    status_code = 400
    default_message = "This QR code is already active"


class ValidationError(QRServiceError):
    status_code = 400
    default_message = "Invalid request"


class UpstreamFailure(QRServiceError):
    status_code = 502
    default_message = "Payment gateway request failed"
