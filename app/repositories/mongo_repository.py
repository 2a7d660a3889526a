import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collation import Collation
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.database import MongoStore
from app.exception.api.store_exception import StoreUnavailableError
from app.exception.common.resource_exception import (
    ConflictError,
    DuplicateDisplayIdError,
    DuplicateEmailError,
    UsernameTakenError,
)
from app.models.favorite import FavoriteEdge
from app.models.recipe import Recipe
from app.models.user import User
from app.repositories.base import IRecipeRepository, IUserRepository
from app.utils.query_params import ListQuery

logger = logging.getLogger(__name__)

# "u999" < "u1000" 이 되도록 숫자 부분을 숫자로 비교
_NUMERIC_COLLATION = Collation(locale="en", numericOrdering=True)


def _duplicate_key_error(err: DuplicateKeyError) -> ConflictError:
    """유니크 인덱스 위반을 도메인 충돌 예외로 변환"""
    details = err.details or {}
    fields = list((details.get("keyPattern") or {}).keys())
    if not fields:
        message = str(err)
        fields = [name for name in ("email", "username", "id") if f"{name}_1" in message]

    if "email" in fields:
        return DuplicateEmailError()
    if "username" in fields:
        return UsernameTakenError()
    return DuplicateDisplayIdError()


@contextmanager
def store_call(action: str):
    """
    pymongo 호출 구간. 예외를 도메인 예외로 변환하여 상위 호출자에게 전파 (Fail Fast)

    Raises:
        ConflictError: 유니크 인덱스 위반
        StoreUnavailableError: 그 외 저장소 오류
    """
    try:
        yield
    except DuplicateKeyError as e:
        logger.warning(f"Duplicate key while trying to {action}: {e}")
        raise _duplicate_key_error(e) from e
    except PyMongoError as e:
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise StoreUnavailableError(message=f"Server error while trying to {action}", detail=str(e)) from e


def _oid(value: str) -> Optional[ObjectId]:
    return ObjectId(value) if ObjectId.is_valid(value) else None


def _coerce_where(where: Dict[str, Any]) -> Dict[str, Any]:
    """클라이언트 where의 _id 문자열 값을 ObjectId로 변환"""
    if "_id" not in where:
        return where
    coerced = dict(where)
    value = coerced["_id"]
    if isinstance(value, str) and ObjectId.is_valid(value):
        coerced["_id"] = ObjectId(value)
    elif isinstance(value, dict):
        coerced["_id"] = {
            op: [ObjectId(v) if isinstance(v, str) and ObjectId.is_valid(v) else v for v in operand]
            if isinstance(operand, list)
            else (ObjectId(operand) if isinstance(operand, str) and ObjectId.is_valid(operand) else operand)
            for op, operand in value.items()
        }
    return coerced


def _apply_list_query(cursor, query: ListQuery):
    if query.sort:
        cursor = cursor.sort(query.sort)
    if query.skip:
        cursor = cursor.skip(query.skip)
    if query.limit:
        cursor = cursor.limit(query.limit)
    return cursor


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MongoUserRepository(IUserRepository):
    """
    MongoDB users 컬렉션 기반 사용자 저장소 구현체.
    즐겨찾기/작성 레시피 변경은 find_one_and_update 한 번으로 조건 검사와 갱신을 함께 수행합니다.
    """

    def __init__(self, store: MongoStore):
        self.collection = store.users

    def find_max_display_id(self) -> Optional[str]:
        with store_call("find the latest user id"):
            cursor = (
                self.collection.find({"id": {"$type": "string"}}, {"id": 1})
                .sort("id", DESCENDING)
                .collation(_NUMERIC_COLLATION)
                .limit(1)
            )
            doc = next(iter(cursor), None)
        return doc["id"] if doc else None

    def insert(self, document: Dict[str, Any]) -> User:
        with store_call("create user"):
            result = self.collection.insert_one(dict(document))
        return User.model_validate({**document, "_id": result.inserted_id})

    def get(self, user_id: str) -> Optional[User]:
        oid = _oid(user_id)
        if oid is None:
            return None
        with store_call("fetch user"):
            doc = self.collection.find_one({"_id": oid})
        return User.model_validate(doc) if doc else None

    def find_by_email(self, email: str) -> Optional[User]:
        with store_call("fetch user by email"):
            doc = self.collection.find_one({"email": email})
        return User.model_validate(doc) if doc else None

    def find_by_username(self, username: str) -> Optional[User]:
        with store_call("fetch user by username"):
            doc = self.collection.find_one({"username": username})
        return User.model_validate(doc) if doc else None

    def list(self, query: ListQuery) -> List[User]:
        with store_call("list users"):
            cursor = _apply_list_query(self.collection.find(_coerce_where(query.where)), query)
            return [User.model_validate(doc) for doc in cursor]

    def count(self, where: Dict[str, Any]) -> int:
        with store_call("count users"):
            return self.collection.count_documents(_coerce_where(where))

    def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        return self._update({"_id": _oid(user_id)}, {"$set": {**fields, "updated_at": _now()}}, "update user")

    def delete(self, user_id: str) -> bool:
        oid = _oid(user_id)
        if oid is None:
            return False
        with store_call("delete user"):
            result = self.collection.delete_one({"_id": oid})
        return result.deleted_count == 1

    def push_favorite(self, user_id: str, edge: FavoriteEdge) -> Optional[User]:
        return self._update(
            {"_id": _oid(user_id), "favorites.recipe_id": {"$ne": edge.recipe_id}},
            {"$push": {"favorites": edge.model_dump()}, "$set": {"updated_at": _now()}},
            "add favorite",
        )

    def pull_favorite(self, user_id: str, recipe_ref: str) -> Optional[User]:
        return self._update(
            {"_id": _oid(user_id), "favorites.recipe_id": recipe_ref},
            {"$pull": {"favorites": {"recipe_id": recipe_ref}}, "$set": {"updated_at": _now()}},
            "remove favorite",
        )

    def add_created_recipe(self, user_id: str, recipe_id: str) -> Optional[User]:
        return self._update(
            {"_id": _oid(user_id)},
            {"$addToSet": {"createdRecipes": recipe_id}, "$set": {"updated_at": _now()}},
            "register authored recipe",
        )

    def remove_created_recipe(self, user_id: str, recipe_id: str) -> Optional[User]:
        return self._update(
            {"_id": _oid(user_id)},
            {"$pull": {"createdRecipes": recipe_id}, "$set": {"updated_at": _now()}},
            "unregister authored recipe",
        )

    def _update(self, filter_: Dict[str, Any], update: Dict[str, Any], action: str) -> Optional[User]:
        if filter_.get("_id") is None:
            return None
        with store_call(action):
            doc = self.collection.find_one_and_update(
                filter_, update, return_document=ReturnDocument.AFTER
            )
        return User.model_validate(doc) if doc else None


class MongoRecipeRepository(IRecipeRepository):
    """MongoDB recipes 컬렉션 기반 레시피 저장소 구현체"""

    def __init__(self, store: MongoStore):
        self.collection = store.recipes

    def find_max_display_id(self) -> Optional[int]:
        with store_call("find the latest recipe id"):
            cursor = (
                self.collection.find({"id": {"$type": "number"}}, {"id": 1})
                .sort("id", DESCENDING)
                .limit(1)
            )
            doc = next(iter(cursor), None)
        return int(doc["id"]) if doc else None

    def insert(self, document: Dict[str, Any]) -> Recipe:
        with store_call("create recipe"):
            result = self.collection.insert_one(dict(document))
        return Recipe.model_validate({**document, "_id": result.inserted_id})

    def get(self, recipe_id: str) -> Optional[Recipe]:
        oid = _oid(recipe_id)
        if oid is None:
            return None
        with store_call("fetch recipe"):
            doc = self.collection.find_one({"_id": oid})
        return Recipe.model_validate(doc) if doc else None

    def get_many(self, recipe_ids: List[str]) -> List[Recipe]:
        oids = [oid for oid in (_oid(rid) for rid in recipe_ids) if oid is not None]
        if not oids:
            return []
        with store_call("fetch recipes"):
            return [Recipe.model_validate(doc) for doc in self.collection.find({"_id": {"$in": oids}})]

    def list(self, query: ListQuery) -> List[Recipe]:
        with store_call("list recipes"):
            cursor = _apply_list_query(self.collection.find(_coerce_where(query.where)), query)
            return [Recipe.model_validate(doc) for doc in cursor]

    def count(self, where: Dict[str, Any]) -> int:
        with store_call("count recipes"):
            return self.collection.count_documents(_coerce_where(where))

    def update(self, recipe_id: str, fields: Dict[str, Any]) -> Optional[Recipe]:
        oid = _oid(recipe_id)
        if oid is None:
            return None
        with store_call("update recipe"):
            doc = self.collection.find_one_and_update(
                {"_id": oid}, {"$set": fields}, return_document=ReturnDocument.AFTER
            )
        return Recipe.model_validate(doc) if doc else None

    def delete(self, recipe_id: str) -> bool:
        oid = _oid(recipe_id)
        if oid is None:
            return False
        with store_call("delete recipe"):
            result = self.collection.delete_one({"_id": oid})
        return result.deleted_count == 1
