"""Service-layer exceptions carrying the HTTP status routes should return."""

from typing import Optional


class ServiceError(Exception):
    """Base exception for service errors."""

    error = 'Error'

    def __init__(self, message: str, status_code: int = 400, details: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundError(ServiceError):
    error = 'Not Found'

    def __init__(self, message: str):
        super().__init__(message, 404)


class ForbiddenError(ServiceError):
    error = 'Forbidden'

    def __init__(self, message: str):
        super().__init__(message, 403)


class BadRequestError(ServiceError):
    error = 'Bad Request'

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, 400, details)


class ConflictError(ServiceError):
    error = 'Conflict'

    def __init__(self, message: str):
        super().__init__(message, 409)
