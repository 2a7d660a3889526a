import logging
from typing import List, Optional, Tuple

from app.core.config import IMAGE_LIST_DEFAULT_LIMIT
from app.exception.common.resource_exception import ImageNotFoundError
from app.models.image import StoredImage
from app.repositories.base import IImageStore
from app.validate.image_validator import validate_batch_size, validate_image_filename, validate_image_payload

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"

# (filename, content_type, data)
UploadItem = Tuple[Optional[str], Optional[str], bytes]


class ImageService:
    """
    이름으로 접근하는 레시피 이미지 저장/조회

    클라이언트는 확장자 없이 요청하는 경우가 많아, 정확한 이름이 없으면 ".jpg"를 붙여 한 번 더 찾습니다.
    """

    def __init__(self, image_store: IImageStore):
        self.image_store = image_store

    def get_image(self, filename: str) -> StoredImage:
        name = validate_image_filename(filename)
        image = self.image_store.find(name)
        if image is None and not name.endswith(DEFAULT_EXTENSION):
            image = self.image_store.find(f"{name}{DEFAULT_EXTENSION}")
        if image is None:
            raise ImageNotFoundError(data={"filename": name})
        return image

    def upload_image(self, filename: Optional[str], content_type: Optional[str], data: bytes) -> StoredImage:
        """같은 이름의 이미지가 있으면 교체"""
        name = validate_image_filename(filename)
        validate_image_payload(content_type, len(data))
        image = self.image_store.save(name, content_type, data)
        logger.info(f"Image uploaded: {name} ({image.size} bytes)")
        return image

    def upload_batch(self, items: List[UploadItem]) -> List[StoredImage]:
        """모든 파일을 먼저 검증한 뒤 저장 (하나라도 잘못되면 아무것도 저장하지 않음)"""
        validate_batch_size([filename for filename, _, _ in items])
        validated = []
        for filename, content_type, data in items:
            name = validate_image_filename(filename)
            validate_image_payload(content_type, len(data))
            validated.append((name, content_type, data))

        saved = [self.image_store.save(name, content_type, data) for name, content_type, data in validated]
        logger.info(f"Batch upload finished: {len(saved)} images")
        return saved

    def list_images(self, limit: Optional[int] = None) -> List[StoredImage]:
        return self.image_store.list(limit or IMAGE_LIST_DEFAULT_LIMIT)
