from typing import Any

from bson import ObjectId

from app.exception.common.request_exception import InvalidReferenceError


def is_internal_id(value: Any) -> bool:
    """24자리 hex 문자열(또는 ObjectId)인지 확인. 숫자형 표시 ID는 내부 식별자가 아님."""
    if isinstance(value, ObjectId):
        return True
    if not isinstance(value, str):
        return False
    return len(value) == 24 and ObjectId.is_valid(value)


def require_internal_id(value: Any, kind: str) -> str:
    """
    내부 식별자 형식을 검증하고 정규화된 문자열(소문자 hex)을 반환합니다.

    Raises:
        InvalidReferenceError: 형식이 맞지 않는 경우 (저장소 조회 전에 거부)
    """
    if isinstance(value, str):
        value = value.strip()
    if not is_internal_id(value):
        raise InvalidReferenceError(f"Invalid {kind} ID format")
    return str(value).lower()


def require_user_ref(value: Any) -> str:
    return require_internal_id(value, "user")


def require_recipe_ref(value: Any) -> str:
    """즐겨찾기/작성 레시피 참조는 레시피 내부 식별자만 허용 (숫자형 표시 ID 거부)"""
    return require_internal_id(value, "recipe")
