from app.core.error_codes import ErrorCode
from app.exception.base_exception import BaseCustomException


class RequestValidationFailedError(BaseCustomException):
    """필수 필드 누락 또는 형식 오류"""
    error_code = ErrorCode.VALIDATION_ERROR
    message = "Invalid request"
    status_code = 400


class InvalidReferenceError(BaseCustomException):
    """식별자 형식이 올바르지 않음 (저장소 조회 전에 거부)"""
    error_code = ErrorCode.INVALID_REFERENCE
    message = "Invalid identifier format"
    status_code = 400
