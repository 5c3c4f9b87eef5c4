"""Exceptions raised by the portal stores and collaborators."""


class PortalError(Exception):
    """Base exception for all portal errors."""

    pass


class ValidationError(PortalError):
    """Raised when a mutating call carries an invalid field value."""

    def __init__(self, field: str, value=None, reason: str | None = None):
        self.field = field
        self.value = value
        self.reason = reason
        msg = f"Invalid value for {field}: {value!r}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class MissingRequiredField(ValidationError):
    """Raised when a required field is absent or blank."""

    def __init__(self, field: str):
        super().__init__(field, None, "required")
        self.args = (f"{field} is required.",)


class NotFoundError(PortalError):
    """Raised when a product, order or user id doesn't exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class Unauthorized(PortalError):
    """Raised when the acting user may not perform an operation."""

    def __init__(self, action: str, user_id: str | None = None, reason: str | None = None):
        self.action = action
        self.user_id = user_id
        msg = f"Not allowed to {action}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class AccountBlocked(Unauthorized):
    """Raised when a blocked account tries to log in."""

    def __init__(self, username: str):
        self.username = username
        super().__init__("log in", reason="Your account has been blocked. Contact Admin.")


class InvalidTransition(PortalError):
    """Raised when an order is not in a state that accepts the operation."""

    def __init__(self, order_id: str, status, operation: str):
        self.order_id = order_id
        self.status = status
        self.operation = operation
        super().__init__(f"Cannot {operation} order {order_id} while it is {status}")


class CollaboratorUnavailable(PortalError):
    """Raised when an external service is unreachable, unconfigured or timed out."""

    def __init__(self, service: str, reason: str | None = None):
        self.service = service
        msg = f"{service} is unavailable"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
