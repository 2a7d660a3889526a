import re
from typing import Optional

from app.exception.common.request_exception import RequestValidationFailedError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USER_DISPLAY_ID_PATTERN = re.compile(r"^u\d+$")

PASSWORD_MIN_LENGTH = 6
# bcrypt는 72바이트 이후를 무시하거나 거부함
PASSWORD_MAX_BYTES = 72


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def require_field(value, name: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RequestValidationFailedError(f"{name} is required")
    return value


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> str:
    normalized = normalize_email(email)
    if not EMAIL_PATTERN.match(normalized):
        raise RequestValidationFailedError("Invalid email format")
    return normalized


def validate_password(password: str) -> str:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise RequestValidationFailedError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise RequestValidationFailedError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return password


def validate_registration(username: Optional[str], email: Optional[str], password: Optional[str]):
    """회원가입/사용자 생성 공통 검증. 정규화된 (username, email, password) 반환"""
    if _blank(username) or _blank(email) or _blank(password):
        raise RequestValidationFailedError("Username, email, and password are required")
    return username.strip(), validate_email(email), validate_password(password)


def validate_login(email: Optional[str], password: Optional[str]):
    if _blank(email) or _blank(password):
        raise RequestValidationFailedError("Please provide email and password")
    return normalize_email(email), password


def validate_user_update(username: Optional[str], email: Optional[str], password: Optional[str]):
    if _blank(username) or _blank(email):
        raise RequestValidationFailedError("Username and email are required")
    if password is not None:
        validate_password(password)
    return username.strip(), validate_email(email), password


def validate_user_display_id(display_id: Optional[str]) -> Optional[str]:
    """호출자가 직접 지정하는 사용자 표시 ID (u + 숫자)"""
    if display_id is None:
        return None
    display_id = display_id.strip()
    if not USER_DISPLAY_ID_PATTERN.match(display_id):
        raise RequestValidationFailedError("User ID must look like u001")
    return display_id


def validate_title(title: Optional[str]) -> str:
    if _blank(title):
        raise RequestValidationFailedError("Title is required")
    return title.strip()
