# app/core/errors.py
from fastapi import HTTPException, status


class ApiError(HTTPException):
    """클라이언트에 노출되는 오류 (detail = i18n 메시지 키)"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_key = "common.internal_error"

    def __init__(self, message_key: str | None = None, headers: dict | None = None):
        self.message_key = message_key or self.default_key
        super().__init__(status_code=self.status_code, detail=self.message_key, headers=headers)


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_key = "common.invalid_data"


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_key = "auth.session_invalid"


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_key = "common.forbidden"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_key = "share.not_found"


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_key = "auth.email_exists"


class TooManyRequests(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_key = "common.rate_limited"


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_key = "common.internal_error"


class ServiceUnavailable(ApiError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_key = "common.internal_error"
