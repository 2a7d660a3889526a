from typing import List, Optional

from app.core.config import IMAGE_ALLOWED_TYPES, IMAGE_MAX_BYTES, IMAGE_BATCH_LIMIT
from app.exception.common.request_exception import RequestValidationFailedError


def validate_image_filename(filename: Optional[str]) -> str:
    if not filename or not filename.strip():
        raise RequestValidationFailedError("No file uploaded")
    name = filename.strip()
    # 경로 구분자가 포함된 파일명은 저장 키로 쓰지 않음
    if "/" in name or "\\" in name:
        raise RequestValidationFailedError("Invalid filename")
    return name


def validate_image_payload(content_type: Optional[str], size: int):
    """업로드 파일 하나에 대한 타입/크기 검증"""
    if content_type not in IMAGE_ALLOWED_TYPES:
        raise RequestValidationFailedError("Only image files are allowed (jpg, jpeg, png, webp)")
    if size == 0:
        raise RequestValidationFailedError("Uploaded file is empty")
    if size > IMAGE_MAX_BYTES:
        raise RequestValidationFailedError(f"File too large (max {IMAGE_MAX_BYTES // (1024 * 1024)}MB)")


def validate_batch_size(filenames: List[str]):
    if not filenames:
        raise RequestValidationFailedError("No files uploaded")
    if len(filenames) > IMAGE_BATCH_LIMIT:
        raise RequestValidationFailedError(f"Too many files (max {IMAGE_BATCH_LIMIT})")
