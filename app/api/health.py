import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.dependencies import get_image_store
from app.core.error_codes import ErrorCode
from app.core.response import ApiResponse, error_response, success_response
from app.repositories.base import IImageStore

router = APIRouter(prefix="/api/health", tags=["Health"])
logger = logging.getLogger(__name__)


@router.get("/ready", response_model=ApiResponse)
def ready(image_store: IImageStore = Depends(get_image_store)):
    """저장소 준비 상태. 준비되지 않았으면 503"""
    if not image_store.is_ready():
        logger.warning("Readiness check failed: store not ready")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_response(message="Store not ready", code=ErrorCode.STORE_NOT_READY).model_dump(),
        )
    return success_response(data={"ready": True})
