"""
Application error taxonomy.

Services raise these; the handlers registered in ``ucms.main`` turn them
into ``{"message": ...}`` JSON responses with the matching status code.
"""


class AppError(Exception):
    """Base class for errors that are safe to show to the client"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input"""
    status_code = 400
    default_message = "Invalid request"


class AuthError(AppError):
    """Missing/invalid credential or OTP"""
    status_code = 401
    default_message = "Unauthorized"


class AccessDeniedError(AppError):
    """Authenticated but not allowed"""
    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """Duplicate value in a unique field"""
    status_code = 400
    default_message = "Already exists"


class InternalError(AppError):
    """Unexpected backend failure"""
    status_code = 500
