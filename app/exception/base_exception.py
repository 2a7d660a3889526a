from typing import Any, Optional

from app.core.error_codes import ErrorCode


class BaseCustomException(Exception):
    """
    모든 커스텀 예외의 최상위 클래스.
    이 클래스를 상속받아 구체적인 예외를 정의해야 함.

    Attributes:
        error_code (str): 응답 envelope의 code 값
        message (str): 클라이언트에 노출되는 메시지
        status_code (int): HTTP 상태 코드
        data (Any): 응답 envelope의 data 값 (기본 None)
    """
    error_code: str = ErrorCode.INTERNAL_ERROR
    message: str = "Unknown error"
    status_code: int = 500

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        data: Any = None,
    ):
        if message:
            self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.data = data
        super().__init__(self.message)
