from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, Header, Query, Request
from pymongo.errors import PyMongoError

from app.core.config import PUBLIC_BASE_URL, STORE_BACKEND, UPLOAD_TOKEN
from app.core.context import set_caller
from app.core.database import MongoStore
from app.core.security import decode_access_token
from app.exception.common.auth_exception import TokenMissingError, UploadTokenInvalidError
from app.repositories.base import IImageStore, IRecipeRepository, IUserRepository
from app.services.auth_service import AuthService
from app.services.identity_allocator import IdentityAllocator
from app.services.image_service import ImageService
from app.services.recipe_service import RecipeService
from app.services.relationship_manager import RelationshipManager
from app.services.user_service import UserService
from app.utils.query_params import ListQuery, parse_list_query

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _use_memory_store() -> bool:
    return STORE_BACKEND == "memory"


# --- 저장소 (Singleton via lru_cache) ---

@lru_cache(maxsize=1)
def get_mongo_store() -> MongoStore:
    """
    MongoStore 의존성. 최초 호출 시 한 번 생성하고 유니크 인덱스를 보장합니다.
    인덱스 생성 실패(연결 불가 등)는 로깅만 하고 요청 단계에서 StoreUnavailableError로 드러납니다.
    """
    store = MongoStore()
    try:
        store.ensure_indexes()
    except PyMongoError as e:
        logger.error(f"Failed to ensure MongoDB indexes: {e}")
    return store


@lru_cache(maxsize=1)
def get_user_repository() -> IUserRepository:
    if _use_memory_store():
        from app.repositories.memory import InMemoryUserRepository
        return InMemoryUserRepository()
    from app.repositories.mongo_repository import MongoUserRepository
    return MongoUserRepository(get_mongo_store())


@lru_cache(maxsize=1)
def get_recipe_repository() -> IRecipeRepository:
    if _use_memory_store():
        from app.repositories.memory import InMemoryRecipeRepository
        return InMemoryRecipeRepository()
    from app.repositories.mongo_repository import MongoRecipeRepository
    return MongoRecipeRepository(get_mongo_store())


@lru_cache(maxsize=1)
def get_image_store() -> IImageStore:
    if _use_memory_store():
        from app.repositories.memory import InMemoryImageStore
        return InMemoryImageStore()
    from app.repositories.gridfs_store import GridFSImageStore
    return GridFSImageStore(get_mongo_store())


# --- 서비스 ---

def get_identity_allocator(
    user_repo: IUserRepository = Depends(get_user_repository),
    recipe_repo: IRecipeRepository = Depends(get_recipe_repository),
) -> IdentityAllocator:
    return IdentityAllocator(user_repo, recipe_repo)


def get_relationship_manager(
    user_repo: IUserRepository = Depends(get_user_repository),
    recipe_repo: IRecipeRepository = Depends(get_recipe_repository),
) -> RelationshipManager:
    return RelationshipManager(user_repo, recipe_repo)


def get_user_service(
    user_repo: IUserRepository = Depends(get_user_repository),
    allocator: IdentityAllocator = Depends(get_identity_allocator),
) -> UserService:
    return UserService(user_repo, allocator)


def get_recipe_service(
    recipe_repo: IRecipeRepository = Depends(get_recipe_repository),
    user_repo: IUserRepository = Depends(get_user_repository),
    allocator: IdentityAllocator = Depends(get_identity_allocator),
    relationships: RelationshipManager = Depends(get_relationship_manager),
) -> RecipeService:
    return RecipeService(recipe_repo, user_repo, allocator, relationships)


def get_auth_service(
    user_repo: IUserRepository = Depends(get_user_repository),
    recipe_repo: IRecipeRepository = Depends(get_recipe_repository),
    allocator: IdentityAllocator = Depends(get_identity_allocator),
) -> AuthService:
    return AuthService(user_repo, recipe_repo, allocator)


def get_image_service(image_store: IImageStore = Depends(get_image_store)) -> ImageService:
    return ImageService(image_store)


# --- 요청 헤더 검증 ---

def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.strip():
        return None
    value = authorization.strip()
    if value.startswith(BEARER_PREFIX):
        value = value[len(BEARER_PREFIX):].strip()
    return value or None


def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    """
    Authorization: Bearer <token> 검증 Dependency

    Returns:
        dict: 토큰 claims ({userId, username, exp})

    Raises:
        TokenMissingError(401): 헤더 없음
        TokenExpiredError(401): 만료
        TokenInvalidError(401): 그 외 검증 실패
    """
    token = _bearer_token(authorization)
    if token is None:
        raise TokenMissingError()

    claims = decode_access_token(token)
    set_caller(claims["userId"])
    return claims


def require_upload_token(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> None:
    """이미지 업로드 전용 고정 토큰 검증"""
    if _bearer_token(authorization) != UPLOAD_TOKEN:
        raise UploadTokenInvalidError()


def get_base_url(request: Request) -> str:
    """imageUrl 생성용 외부 주소. PUBLIC_BASE_URL이 없으면 요청의 base_url"""
    return PUBLIC_BASE_URL or str(request.base_url).rstrip("/")


def get_list_query(
    where: str | None = Query(None, description='JSON 필터. 예) {"title": "Tomato Soup"}'),
    sort: str | None = Query(None, description='JSON 정렬. 예) {"id": -1}'),
    select: str | None = Query(None, description='JSON 필드 선택. 예) {"title": 1}'),
    skip: int | None = Query(None, description="건너뛸 개수"),
    limit: int | None = Query(None, description="최대 개수"),
) -> ListQuery:
    """목록 API 공통 쿼리 파라미터. 잘못된 JSON은 400"""
    return parse_list_query(where=where, sort=sort, select=select, skip=skip, limit=limit)


def get_count_filter(
    where: str | None = Query(None, description="JSON 필터"),
) -> dict:
    return parse_list_query(where=where).where
