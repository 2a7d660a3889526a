from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi import HTTPException
from slowapi.errors import RateLimitExceeded
import logging
from app.core.response import error_response, ValidationErrorDetail
from app.core.error_codes import ErrorCode
from app.exception.base_exception import BaseCustomException
from app.exception.api.store_exception import StoreUnavailableError
from app.exception.common.rate_limit_exception import OverRateLimitError
from app.core.config import IS_DEBUG
import traceback

logger = logging.getLogger("app")


def _client_ip(request: Request):
    return request.client.host if request.client else None


async def custom_exception_handler(request: Request, exc: BaseCustomException):
    """
    도메인 예외(BaseCustomException)를 ApiResponse 포맷으로 변환합니다.
    4xx는 경고 수준, 5xx(저장소 실패 등)는 에러 수준으로 로깅합니다.
    """
    log_payload = {
        "status": exc.status_code,
        "errorCode": exc.error_code,
        "message": exc.message,
        "client_ip": _client_ip(request),
        "path": request.url.path,
    }
    if exc.status_code >= 500:
        logger.error({**log_payload, "detail": getattr(exc, "detail", None)})
    else:
        logger.warning(log_payload)

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_response(
            message=exc.message,
            code=exc.error_code,
            data=exc.data,
        ).model_dump())
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """FastAPI HTTPException(라우팅 404, 405 등)도 표준 envelope로 변환"""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=str(exc.detail),
            code=ErrorCode.http_error(exc.status_code)
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    본문/쿼리 파라미터의 형식 오류를 400 ValidationError로 변환합니다.
    data에는 필드 경로별 상세 정보가 담깁니다.
    """
    error_details = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        error_details[field] = ValidationErrorDetail(
            message=error["msg"],
            type=error["type"],
            input=error.get("input")
        )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(error_response(
            message="Invalid request",
            code=ErrorCode.VALIDATION_ERROR,
            data=error_details
        ).model_dump())
    )


async def store_exception_handler(request: Request, exc: StoreUnavailableError):
    """저장소 실패는 스택 트레이스와 함께 로깅하고 원본 메시지를 data.error_detail로 노출"""
    logger.exception(
        f"Store failure: {exc.detail}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "client_ip": _client_ip(request),
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=exc.message,
            code=exc.error_code,
            data=exc.data,
        ).model_dump()
    )


async def global_exception_handler_envelope(request: Request, exc: Exception):
    """
    처리되지 않은 모든 예외를 500 ApiResponse로 변환합니다.
    스택 트레이스는 로그에만 남기고, 디버그 모드에서만 응답에 포함합니다.
    """
    logger.exception(
        f"Unhandled Exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "client_ip": _client_ip(request),
        }
    )

    if IS_DEBUG:
        error_result = {
            "error_detail": str(exc),
            "stack_trace": traceback.format_exc()
        }
    else:
        error_result = None

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            message="Internal server error",
            code=ErrorCode.INTERNAL_ERROR,
            data=error_result
        ).model_dump()
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    """slowapi의 RateLimitExceeded를 OverRateLimitError로 바꿔 동일한 응답 포맷을 유지"""
    return await custom_exception_handler(request, OverRateLimitError())
