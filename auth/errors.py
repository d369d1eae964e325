"""
auth/errors.py -- Typed failures raised by the auth layer.

The service and stores raise these; web/routes.py is the only place that turns
them into user-facing text. Every error carries a short .message that is safe
to render.
"""


class AuthError(Exception):
    """Base exception for all authentication errors."""

    def __init__(self, message: str = "Authentication error"):
        self.message = message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Raised when submitted input fails its schema. Names the first violation."""

    def __init__(self, message: str = "Invalid input", field: str | None = None):
        self.field = field
        super().__init__(message)


class ConflictError(AuthError):
    """Raised when signing up with an email that is already registered."""

    def __init__(self, message: str = "An account with that email already exists"):
        super().__init__(message)


class NotFoundError(AuthError):
    """Raised when no user matches the submitted email."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Raised when the password does not match the stored hash."""

    def __init__(self, message: str = "Invalid password"):
        super().__init__(message)


class StoreUnavailableError(AuthError):
    """Raised when the credential or session store cannot be reached."""

    def __init__(self, message: str = "Storage is temporarily unavailable"):
        super().__init__(message)
