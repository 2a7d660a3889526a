from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class StoredImage(BaseModel):
    """이미지 저장소(GridFS)에 저장된 파일 메타데이터. data는 단건 조회 시에만 채워짐."""
    file_id: str
    filename: str
    content_type: str = "image/jpeg"
    size: int = 0
    upload_date: Optional[datetime] = None
    data: Optional[bytes] = Field(None, repr=False)

    @property
    def url_path(self) -> str:
        # 클라이언트는 확장자 없는 경로를 사용 (조회 시 .jpg 폴백)
        return f"/api/gridfs-images/{self.filename.replace('.jpg', '')}"

    def to_public(self) -> Dict[str, Any]:
        return {
            "fileId": self.file_id,
            "filename": self.filename,
            "contentType": self.content_type,
            "size": self.size,
            "uploadDate": self.upload_date,
            "imageUrl": self.url_path,
        }
