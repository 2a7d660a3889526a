import os
from dotenv import load_dotenv

load_dotenv()

APP_ENV = os.getenv("APP_ENV", "production")
IS_DEBUG = APP_ENV == "development"

# 저장소 백엔드: "mongo"(기본) 또는 "memory"(로컬 실행/테스트용)
STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo")

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "recipes")
MONGODB_TIMEOUT_MS = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))

_DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"
JWT_SECRET = os.getenv("JWT_SECRET", _DEFAULT_JWT_SECRET)
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
USING_DEFAULT_JWT_SECRET = JWT_SECRET == _DEFAULT_JWT_SECRET

UPLOAD_TOKEN = os.getenv("UPLOAD_TOKEN", "recipe-upload-secret-2024")

# imageUrl 생성 시 사용할 외부 공개 주소 (없으면 요청 base_url 사용)
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL") or (
    f"https://{os.getenv('RAILWAY_URL')}" if os.getenv("RAILWAY_URL") else None
)

# 사용자 작성 레시피는 카탈로그(일괄 import) ID 대역과 겹치지 않도록 이 값부터 시작
AUTHORED_RECIPE_ID_FLOOR = 10000

IMAGE_BUCKET = os.getenv("IMAGE_BUCKET", "recipeImages")
IMAGE_MAX_BYTES = 10 * 1024 * 1024
IMAGE_ALLOWED_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
IMAGE_BATCH_LIMIT = 100
IMAGE_LIST_DEFAULT_LIMIT = 100

RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "20"))

LOG_DIR = os.getenv("LOG_DIR")


# CORS 허용 오리진 (환경변수 기반)
def _parse_origins(value: str | None) -> list[str]:
    if not value:
        return []
    normalized = value.replace("\n", ",").replace(";", ",")
    items = [item.strip() for item in normalized.split(",")]
    return [item for item in items if item]

_DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

# 우선순위: CORS_ALLOWED_ORIGINS(복수) > FRONTEND_ORIGINS(복수) > FRONTEND_URL(단일)
_cors_allowed_origins = _parse_origins(os.getenv("CORS_ALLOWED_ORIGINS"))
_frontend_origins = _parse_origins(os.getenv("FRONTEND_ORIGINS"))
_single_frontend_url = [os.getenv("FRONTEND_URL")] if os.getenv("FRONTEND_URL") else []

# 중복 제거를 위해 dict 키 보존 방식 사용
ALLOWED_ORIGINS = list(dict.fromkeys(_DEFAULT_ALLOWED_ORIGINS + _cors_allowed_origins + _frontend_origins + _single_frontend_url))
