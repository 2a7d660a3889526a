from app.core.error_codes import ErrorCode
from app.exception.base_exception import BaseCustomException


class StoreUnavailableError(BaseCustomException):
    """
    문서 저장소 호출 실패 (연결 불가, 타임아웃 등).
    원본 저장소 오류 메시지는 응답 data.error_detail 로 전달됩니다.
    """
    error_code = ErrorCode.STORE_UNAVAILABLE
    message = "Server error"
    status_code = 500

    def __init__(self, message: str = None, detail: str = None):
        super().__init__(message=message, data={"error_detail": detail} if detail else None)
        self.detail = detail


class ImageStoreNotReadyError(BaseCustomException):
    """이미지 저장소(GridFS 버킷)가 아직 준비되지 않음"""
    error_code = ErrorCode.STORE_NOT_READY
    message = "Image store not initialized"
    status_code = 503
