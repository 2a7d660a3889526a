import logging
from typing import Optional

from gridfs import GridFSBucket
from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

from app.core.config import IMAGE_BUCKET, MONGODB_DB, MONGODB_TIMEOUT_MS, MONGODB_URI

logger = logging.getLogger(__name__)


class MongoStore:
    """
    MongoDB 연결과 컬렉션/GridFS 버킷 핸들을 소유하는 저장소 클라이언트.

    애플리케이션 시작 시 한 번 생성되어 저장소 구현체들에 주입됩니다.
    MongoClient는 지연 연결하므로 생성만으로는 네트워크 호출이 일어나지 않고,
    실제 준비 상태는 ping()으로 확인합니다.
    """

    def __init__(
        self,
        uri: str = MONGODB_URI,
        db_name: str = MONGODB_DB,
        client: Optional[MongoClient] = None,
    ):
        self.client = client or MongoClient(
            uri,
            serverSelectionTimeoutMS=MONGODB_TIMEOUT_MS,
            tz_aware=True,
        )
        self.db = self.client[db_name]
        self.users = self.db["users"]
        self.recipes = self.db["recipes"]
        self.image_bucket = GridFSBucket(self.db, bucket_name=IMAGE_BUCKET)

    def ensure_indexes(self) -> None:
        """
        유니크 제약 생성. 표시용 ID는 동시 생성 경합을 최종적으로 막는 장치이므로 필수.
        표시용 ID가 없는 레거시 문서는 partial index로 제외합니다.
        """
        self.users.create_index(
            [("id", ASCENDING)],
            name="id_1",
            unique=True,
            partialFilterExpression={"id": {"$type": "string"}},
        )
        self.users.create_index([("email", ASCENDING)], name="email_1", unique=True)
        self.recipes.create_index(
            [("id", ASCENDING)],
            name="id_1",
            unique=True,
            partialFilterExpression={"id": {"$type": "number"}},
        )
        self.recipes.create_index([("createdBy", ASCENDING)], name="createdBy_1")

    def ping(self) -> bool:
        """저장소 준비 상태 확인"""
        try:
            self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    def close(self) -> None:
        self.client.close()
