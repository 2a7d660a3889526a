from app.core.error_codes import ErrorCode
from app.exception.base_exception import BaseCustomException


class OverRateLimitError(BaseCustomException):
    error_code = ErrorCode.RATE_LIMITED
    message = "Too many requests, please try again later"
    status_code = 429
