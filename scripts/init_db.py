import logging

from pymongo.errors import PyMongoError

from app.core.database import MongoStore
from app.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def init_db():
    """MongoDB 유니크 인덱스를 생성합니다.

    API 서버도 최초 저장소 접근 시 같은 인덱스를 보장하지만,
    배포 전에 기존 데이터의 중복(표시용 ID, 이메일)을 미리 확인하려면 이 스크립트를 실행합니다.
    """
    store = MongoStore()
    try:
        if not store.ping():
            logger.error("MongoDB is not reachable")
            return False
        store.ensure_indexes()
        logger.info("Indexes created successfully.")
        return True
    except PyMongoError as e:
        # 이미 중복 데이터가 있으면 유니크 인덱스 생성이 실패함
        logger.error(f"Error creating indexes: {e}")
        return False
    finally:
        store.close()


if __name__ == "__main__":
    # NOTE: 루트 디렉토리에서 'python -m scripts.init_db' 명령어로 실행해야 함
    setup_logging()
    init_db()
