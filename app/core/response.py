from typing import TypeVar, Generic, Optional, Any
from pydantic import BaseModel, ConfigDict
from app.core.error_codes import ErrorCode

T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """
    API 공통 응답 모델 (Envelope Pattern)

    Attributes:
        success (bool): 성공 여부
        code (str): 응답 코드 (성공: "COMMON200", 실패: 에러코드)
        message (str): 사용자 노출 가능 메시지
        data (T | None): 실제 데이터. 컬렉션 조회는 항상 리스트.
            실패 시에는 에러 상세 정보 또는 null
    """
    success: bool
    code: str
    message: str
    data: Optional[T] = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "success": True,
                    "code": "COMMON200",
                    "message": "OK",
                    "data": [{"_id": "665f1c2e9b1e8a3d4c5b6a7f", "id": 12, "title": "Tomato Soup"}]
                },
                {
                    "success": False,
                    "code": "CONFLICT-001",
                    "message": "Recipe already in favorites",
                    "data": None
                }
            ]
        }
    )

    @classmethod
    def ok(cls, data: Any = None, message: str = "OK", code: str = ErrorCode.COMMON_SUCCESS) -> "ApiResponse[Any]":
        return cls(success=True, code=code, message=message, data=data)

    @classmethod
    def fail(cls, message: str, code: str = ErrorCode.INTERNAL_ERROR, data: Any = None) -> "ApiResponse[Any]":
        return cls(success=False, code=code, message=message, data=data)


class ValidationErrorDetail(BaseModel):
    """Validation 에러의 필드별 상세 정보"""
    message: str
    type: str
    input: Any | None = None


def success_response(data: Any = None, message: str = "OK") -> ApiResponse[Any]:
    return ApiResponse.ok(data=data, message=message)


def error_response(message: str, code: str = ErrorCode.INTERNAL_ERROR, data: Optional[Any] = None) -> ApiResponse[Any]:
    return ApiResponse.fail(message=message, code=code, data=data)
