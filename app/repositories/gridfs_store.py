import logging
from datetime import datetime, timezone
from typing import List, Optional

from gridfs import GridFSBucket
from pymongo import DESCENDING

from app.core.database import MongoStore
from app.exception.api.store_exception import ImageStoreNotReadyError
from app.models.image import StoredImage
from app.repositories.base import IImageStore
from app.repositories.mongo_repository import store_call

logger = logging.getLogger(__name__)


def _to_image(grid_out, data: Optional[bytes] = None) -> StoredImage:
    metadata = grid_out.metadata or {}
    content_type = metadata.get("contentType") or getattr(grid_out, "content_type", None) or "image/jpeg"
    return StoredImage(
        file_id=str(grid_out._id),
        filename=grid_out.filename,
        content_type=content_type,
        size=grid_out.length,
        upload_date=grid_out.upload_date,
        data=data,
    )


class GridFSImageStore(IImageStore):
    """
    MongoDB GridFS 버킷 기반 이미지 저장소.
    버킷 핸들은 MongoStore가 생성하여 주입하며, 준비 상태는 저장소 ping으로 판단합니다.
    """

    def __init__(self, store: MongoStore):
        self.store = store
        self.bucket: GridFSBucket = store.image_bucket

    def is_ready(self) -> bool:
        return self.bucket is not None and self.store.ping()

    def _require_ready(self):
        if self.bucket is None:
            raise ImageStoreNotReadyError()

    def find(self, filename: str) -> Optional[StoredImage]:
        self._require_ready()
        with store_call("retrieve image"):
            cursor = self.bucket.find({"filename": filename}).sort("uploadDate", DESCENDING).limit(1)
            grid_out = next(iter(cursor), None)
            if grid_out is None:
                return None
            return _to_image(grid_out, data=grid_out.read())

    def save(self, filename: str, content_type: str, data: bytes) -> StoredImage:
        self._require_ready()
        with store_call("upload image"):
            for existing in self.bucket.find({"filename": filename}):
                self.bucket.delete(existing._id)
                logger.info(f"Replaced existing image {filename}")

            uploaded_at = datetime.now(timezone.utc)
            file_id = self.bucket.upload_from_stream(
                filename,
                data,
                metadata={"contentType": content_type, "size": len(data), "uploadDate": uploaded_at},
            )
        return StoredImage(
            file_id=str(file_id),
            filename=filename,
            content_type=content_type,
            size=len(data),
            upload_date=uploaded_at,
        )

    def list(self, limit: int) -> List[StoredImage]:
        self._require_ready()
        with store_call("list images"):
            return [_to_image(grid_out) for grid_out in self.bucket.find().limit(limit)]
