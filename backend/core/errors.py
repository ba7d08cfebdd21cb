"""Application error taxonomy.

Every error the API reports on purpose is an ``AppError``. Each subclass
pins its HTTP status, so route and service code only pick the kind of
failure and a message. The handlers in ``backend.main`` render all of them
as ``{"message": ...}``.
"""

from fastapi import HTTPException, status


class AppError(HTTPException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error'

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None) -> None:
        super().__init__(
            status_code=self.http_status,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationError(AppError):
    http_status = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'


class AuthenticationError(AppError):
    http_status = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Authentication required.'

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail, headers={'WWW-Authenticate': 'Bearer'})


class AuthorizationError(AppError):
    http_status = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'


class NotFoundError(AppError):
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'


class ConflictError(AppError):
    http_status = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'


class InternalError(AppError):
    pass
