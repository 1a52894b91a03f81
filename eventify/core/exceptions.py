"""Domain errors raised by the services and translated to HTTP responses in main.py."""


class EventifyError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationFailedError(EventifyError):
    status_code = 422


class BookingValidationError(ValidationFailedError):
    """A booking draft is missing a required field or carries an invalid value."""


class SlotConflictError(EventifyError):
    """The slot allocator rejected the requested slot for the date."""
    status_code = 409

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PermissionDeniedError(EventifyError):
    status_code = 403


class NotFoundError(EventifyError):
    status_code = 404


class AuthenticationError(EventifyError):
    status_code = 401


class StoreError(EventifyError):
    """The event record store (local file or Supabase) failed an I/O operation."""
    status_code = 503
