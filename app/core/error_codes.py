"""
에러 코드 상수 정의

매직 스트링 대신 상수를 사용하여 오타를 막고 응답 코드를 한 곳에서 관리합니다.
형식: 카테고리(영문)-번호
"""


class ErrorCode:
    """에러 코드 상수 클래스"""

    # 공통 성공 코드
    COMMON_SUCCESS = "COMMON200"

    # 공통 에러 코드
    INTERNAL_ERROR = "COMMON-001"
    VALIDATION_ERROR = "VALIDATION-001"
    INVALID_REFERENCE = "REF-001"

    # 리소스 없음
    USER_NOT_FOUND = "USER-404"
    RECIPE_NOT_FOUND = "RECIPE-404"
    FAVORITE_NOT_FOUND = "FAVORITE-404"
    IMAGE_NOT_FOUND = "IMAGE-404"

    # 충돌 (중복)
    ALREADY_FAVORITED = "CONFLICT-001"
    DUPLICATE_EMAIL = "CONFLICT-002"
    USERNAME_TAKEN = "CONFLICT-003"
    DUPLICATE_DISPLAY_ID = "CONFLICT-004"

    # 인증/인가
    TOKEN_MISSING = "AUTH-001"
    TOKEN_EXPIRED = "AUTH-002"
    TOKEN_INVALID = "AUTH-003"
    INVALID_CREDENTIALS = "AUTH-004"
    UPLOAD_TOKEN_INVALID = "AUTH-005"
    FORBIDDEN = "AUTH-403"

    # 저장소
    STORE_UNAVAILABLE = "STORE-001"
    STORE_NOT_READY = "STORE-002"

    RATE_LIMITED = "RATE-001"

    @staticmethod
    def http_error(status_code: int) -> str:
        """
        HTTP 상태 코드 기반 에러 코드 생성

        Args:
            status_code: HTTP 상태 코드 (예: 400, 404, 500)

        Returns:
            str: 에러 코드 (예: "HTTP_400", "HTTP_404")
        """
        return f"HTTP_{status_code}"
