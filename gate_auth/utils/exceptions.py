# =======================================================================================
# gate_auth/utils/exceptions.py - Custom Exceptions
# =======================================================================================
from typing import Optional


class GateAuthError(Exception):
    """Base exception for the gate auth service."""
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---- 400: bad input shape ----

class ValidationError(GateAuthError):
    """Raised when request input is malformed."""
    status_code = 400
    message = "Invalid request"


class InvalidPhoneFormatError(ValidationError):
    message = "Invalid phone number format. Use international format (e.g., +77771234567)"


class WeakPasswordError(ValidationError):
    message = "Password must be at least 6 characters long"


class InvalidRoleError(ValidationError):
    message = "Invalid role. Must be 'super' or 'regular'"


# ---- 401: authentication ----

class UnauthorizedError(GateAuthError):
    """Raised when a request carries no usable authentication."""
    status_code = 401
    message = "Authentication required"


class MissingAuthorizationError(UnauthorizedError):
    message = "Missing authorization header"


class MalformedAuthorizationError(UnauthorizedError):
    message = "Invalid authorization header format. Use: Bearer <token>"


class InvalidOrExpiredTokenError(UnauthorizedError):
    message = "Invalid or expired token"


class PrincipalNotFoundError(UnauthorizedError):
    message = "User not found"


class CredentialError(GateAuthError):
    """Wrong password or unknown identity; deliberately generic."""
    status_code = 401
    message = "Invalid credentials"


class InvalidCredentialsError(CredentialError):
    pass


class TokenError(GateAuthError):
    """Raised by the token codec when a token cannot be accepted."""
    status_code = 401
    message = "Invalid token"


class MalformedTokenError(TokenError):
    message = "Malformed token"


class BadSignatureError(TokenError):
    message = "Token signature verification failed"


class TokenExpiredError(TokenError):
    message = "Token has expired"


class KindMismatchError(TokenError):
    message = "Invalid token type"


class InvalidationError(GateAuthError):
    """A well-formed token whose version no longer matches the principal."""
    status_code = 401
    message = "Token has been invalidated. Please login again."


class TokenInvalidatedError(InvalidationError):
    pass


# ---- 403 / 404 / 409 ----

class ForbiddenError(GateAuthError):
    status_code = 403
    message = "Super admin access required"


class NotFoundError(GateAuthError):
    status_code = 404
    message = "Resource not found"


class ConflictError(GateAuthError):
    status_code = 409
    message = "Conflict"


class AlreadyExistsError(ConflictError):
    message = "Resource already exists"


class ConcurrentUpdateError(ConflictError):
    message = "The record was modified concurrently. Please retry."
