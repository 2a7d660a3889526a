from app.core.error_codes import ErrorCode
from app.exception.base_exception import BaseCustomException


class UnauthorizedError(BaseCustomException):
    error_code = ErrorCode.http_error(401)
    message = "Unauthorized"
    status_code = 401


class TokenMissingError(UnauthorizedError):
    error_code = ErrorCode.TOKEN_MISSING
    message = "No token provided"


class TokenExpiredError(UnauthorizedError):
    error_code = ErrorCode.TOKEN_EXPIRED
    message = "Token expired"


class TokenInvalidError(UnauthorizedError):
    error_code = ErrorCode.TOKEN_INVALID
    message = "Invalid token"


class InvalidCredentialsError(UnauthorizedError):
    error_code = ErrorCode.INVALID_CREDENTIALS
    message = "Invalid email or password"


class UploadTokenInvalidError(UnauthorizedError):
    error_code = ErrorCode.UPLOAD_TOKEN_INVALID
    message = "Invalid or missing authorization token"


class ForbiddenError(BaseCustomException):
    error_code = ErrorCode.FORBIDDEN
    message = "Forbidden"
    status_code = 403


class RecipeForbiddenError(ForbiddenError):
    """작성자가 아닌 사용자의 레시피 수정/삭제 시도"""
    message = "You do not have permission to modify this recipe"
