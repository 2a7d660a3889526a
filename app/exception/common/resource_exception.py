from app.core.error_codes import ErrorCode
from app.exception.base_exception import BaseCustomException


class NotFoundError(BaseCustomException):
    error_code = ErrorCode.http_error(404)
    message = "Not found"
    status_code = 404


class UserNotFoundError(NotFoundError):
    error_code = ErrorCode.USER_NOT_FOUND
    message = "User not found"


class RecipeNotFoundError(NotFoundError):
    error_code = ErrorCode.RECIPE_NOT_FOUND
    message = "Recipe not found"


class FavoriteNotFoundError(NotFoundError):
    error_code = ErrorCode.FAVORITE_NOT_FOUND
    message = "Favorite not found"


class ImageNotFoundError(NotFoundError):
    error_code = ErrorCode.IMAGE_NOT_FOUND
    message = "Image not found"


class ConflictError(BaseCustomException):
    error_code = ErrorCode.http_error(409)
    message = "Conflict"
    status_code = 409


class AlreadyFavoritedError(ConflictError):
    error_code = ErrorCode.ALREADY_FAVORITED
    message = "Recipe already in favorites"


class DuplicateEmailError(ConflictError):
    error_code = ErrorCode.DUPLICATE_EMAIL
    message = "Email already exists"


class UsernameTakenError(ConflictError):
    error_code = ErrorCode.USERNAME_TAKEN
    message = "Username already taken"


class DuplicateDisplayIdError(ConflictError):
    """표시용 ID 유니크 인덱스 위반. 동시 생성 경합에서 진 요청도 여기로 옵니다."""
    error_code = ErrorCode.DUPLICATE_DISPLAY_ID
    message = "ID already exists"
