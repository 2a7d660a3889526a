from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

from app.api.dependencies import get_base_url, get_image_service, require_upload_token
from app.core.config import IMAGE_BATCH_LIMIT, IMAGE_MAX_BYTES
from app.core.response import ApiResponse, success_response
from app.models.image import StoredImage
from app.services.image_service import ImageService
from app.validate.image_validator import validate_image_payload

router = APIRouter(
    prefix="/api/gridfs-images",
    tags=["Images"],
)

IMAGE_CACHE_CONTROL = "public, max-age=31536000"


def _upload_result(image: StoredImage, base_url: str) -> dict:
    data = image.to_public()
    data["fullUrl"] = f"{base_url}{image.url_path}"
    return data


def _check_declared_size(upload: UploadFile):
    # 파싱 단계에서 크기를 알면 읽기 전에 거부
    if upload.size is not None and upload.size > IMAGE_MAX_BYTES:
        validate_image_payload(upload.content_type, upload.size)


def _read(upload: UploadFile) -> tuple:
    """
    업로드 파일을 (파일명, 타입, 바이트)로 읽음

    최대 크기보다 1바이트만 더 읽어 초과 여부는 validate_image_payload 에서 판단합니다.
    """
    _check_declared_size(upload)
    return upload.filename, upload.content_type, upload.file.read(IMAGE_MAX_BYTES + 1)


@router.get("", response_model=ApiResponse)
def list_images(
    limit: Optional[int] = Query(None, ge=1, description="최대 개수 (기본 100)"),
    service: ImageService = Depends(get_image_service),
):
    images = service.list_images(limit)
    return success_response(data=[image.to_public() for image in images])


@router.post("/upload", response_model=ApiResponse, dependencies=[Depends(require_upload_token)])
def upload_image(
    image: Optional[UploadFile] = File(None, description="이미지 파일 (jpg, jpeg, png, webp, 최대 10MB)"),
    base_url: str = Depends(get_base_url),
    service: ImageService = Depends(get_image_service),
):
    """
    이미지 업로드. 같은 파일명이 있으면 교체

    - **Header(Authorization)**: Bearer <업로드 토큰>
    """
    filename, content_type, data = _read(image) if image is not None else (None, None, b"")
    saved = service.upload_image(filename, content_type, data)
    return success_response(data=_upload_result(saved, base_url), message="Upload successful")


@router.post("/batch-upload", response_model=ApiResponse, dependencies=[Depends(require_upload_token)])
def batch_upload_images(
    images: List[UploadFile] = File(None, description=f"이미지 파일 목록 (최대 {IMAGE_BATCH_LIMIT}개)"),
    base_url: str = Depends(get_base_url),
    service: ImageService = Depends(get_image_service),
):
    uploads = images or []
    # 하나라도 크기 초과면 어떤 파일도 읽지 않음
    for upload in uploads:
        _check_declared_size(upload)
    saved = service.upload_batch([_read(upload) for upload in uploads])
    return success_response(
        data=[_upload_result(image, base_url) for image in saved],
        message="Batch upload successful",
    )


@router.get("/{filename}")
def get_image(filename: str, service: ImageService = Depends(get_image_service)):
    """
    이미지 바이너리 반환. 정확한 이름이 없으면 "<filename>.jpg"로 재조회
    """
    image = service.get_image(filename)
    return Response(
        content=image.data or b"",
        media_type=image.content_type,
        headers={"Cache-Control": IMAGE_CACHE_CONTROL},
    )
