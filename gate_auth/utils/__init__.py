# =======================================================================================
# gate_auth/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "GateAuthError", "ValidationError", "InvalidPhoneFormatError", "WeakPasswordError",
    "InvalidRoleError", "UnauthorizedError", "MissingAuthorizationError",
    "MalformedAuthorizationError", "InvalidOrExpiredTokenError", "PrincipalNotFoundError",
    "CredentialError", "InvalidCredentialsError", "TokenError", "MalformedTokenError",
    "BadSignatureError", "TokenExpiredError", "KindMismatchError", "InvalidationError",
    "TokenInvalidatedError", "ForbiddenError", "NotFoundError", "ConflictError",
    "AlreadyExistsError", "ConcurrentUpdateError", "InputValidator", "PHONE_RE",
]
