# rentalcrm/core/error_messages.py
from enum import Enum
from typing import Any, Optional

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    REQUIRED_FIELD = "REQUIRED_FIELD"
    INVALID_EMAIL = "INVALID_EMAIL"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_TOKEN = "INVALID_TOKEN"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    INVALID_OPERATION = "INVALID_OPERATION"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ApiError(HTTPException):
    """HTTP error rendered with the API's error envelope."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Any] = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.code = code
        self.details = details

    def to_dict(self) -> dict:
        error = {"code": self.code.value}
        if self.details is not None:
            error["details"] = self.details
        return {"success": False, "message": self.message, "error": error}


def bad_request(message: str, code: ErrorCode = ErrorCode.VALIDATION_ERROR, details: Any = None) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, message, code, details)


def unauthorized(message: str, code: ErrorCode = ErrorCode.UNAUTHENTICATED, details: Any = None) -> ApiError:
    return ApiError(status.HTTP_401_UNAUTHORIZED, message, code, details)


def not_found(message: str, details: Any = None) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, message, ErrorCode.NOT_FOUND, details)


def conflict(message: str, code: ErrorCode = ErrorCode.ALREADY_EXISTS, details: Any = None) -> ApiError:
    return ApiError(status.HTTP_409_CONFLICT, message, code, details)


def unprocessable(message: str, code: ErrorCode = ErrorCode.VALIDATION_ERROR, details: Any = None) -> ApiError:
    return ApiError(status.HTTP_422_UNPROCESSABLE_ENTITY, message, code, details)


def internal_error(message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR, details: Any = None) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, message, code, details)


def invalid_id(**ids: str) -> ApiError:
    return bad_request("Invalid ID format", ErrorCode.VALIDATION_ERROR, ids)


class ErrorResponses:
    INVALID_CREDENTIALS = unauthorized("Invalid credentials", ErrorCode.UNAUTHENTICATED)
    MISSING_TOKEN = unauthorized("Authentication token is required", ErrorCode.UNAUTHENTICATED)
    INVALID_TOKEN = unauthorized(
        "Invalid or expired authentication token",
        ErrorCode.INVALID_TOKEN,
        {"details": "Token verification failed"},
    )
    EMPTY_BODY = bad_request("Request body cannot be empty", ErrorCode.VALIDATION_ERROR)
    INVALID_JSON = bad_request("Invalid JSON in request body", ErrorCode.VALIDATION_ERROR)
    TENANT_NOT_FOUND = not_found("Tenant not found")
    ALREADY_VERIFIED = bad_request("Email is already verified", ErrorCode.INVALID_OPERATION)
    INVALID_OTP = bad_request("Invalid OTP", ErrorCode.INVALID_OPERATION)
    OTP_EXPIRED = bad_request("OTP has expired. Please request a new one", ErrorCode.INVALID_OPERATION)
