import copy
import re
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId

from app.exception.common.request_exception import RequestValidationFailedError
from app.exception.common.resource_exception import DuplicateDisplayIdError, DuplicateEmailError
from app.models.favorite import FavoriteEdge
from app.models.image import StoredImage
from app.models.recipe import Recipe
from app.models.user import User
from app.repositories.base import IImageStore, IRecipeRepository, IUserRepository
from app.utils.query_params import ListQuery

_MISSING = object()
_FIELD_OPERATORS = frozenset({
    "$exists", "$ne", "$in", "$nin", "$not", "$elemMatch", "$gt", "$gte", "$lt", "$lte", "$regex",
})


def _get_path(doc: Dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _match_operator(value: Any, op: str, operand: Any) -> bool:
    if op not in _FIELD_OPERATORS:
        raise RequestValidationFailedError(f"Unsupported operator '{op}'")
    present = value is not _MISSING
    if op == "$exists":
        return present == bool(operand)
    if op == "$ne":
        return not _match_value(value, operand)
    if op == "$in":
        return any(_match_value(value, item) for item in operand)
    if op == "$nin":
        return not any(_match_value(value, item) for item in operand)
    if op == "$not":
        return not _match_value(value, operand)
    if op == "$elemMatch":
        # 연산자만 있으면 원소 값 자체를, 아니면 원소 문서의 필드를 비교
        by_value = all(k.startswith("$") for k in operand)
        return isinstance(value, list) and any(
            _match_value(item, operand) if by_value or not isinstance(item, dict) else matches(item, operand)
            for item in value
        )
    if not present or value is None:
        return False
    try:
        if op == "$gt":
            return value > operand
        if op == "$gte":
            return value >= operand
        if op == "$lt":
            return value < operand
        if op == "$lte":
            return value <= operand
    except TypeError:
        return False
    # $regex
    return isinstance(value, str) and re.search(operand, value) is not None


def _match_value(value: Any, expected: Any) -> bool:
    if isinstance(expected, dict) and expected and all(k.startswith("$") for k in expected):
        return all(_match_operator(value, op, operand) for op, operand in expected.items())
    if value is _MISSING:
        return expected is None
    # 배열 필드는 원소 중 하나라도 일치하면 매칭 (MongoDB 동작과 동일)
    if isinstance(value, list) and not isinstance(expected, list):
        return any(item == expected for item in value)
    return value == expected


def matches(doc: Dict[str, Any], where: Dict[str, Any]) -> bool:
    """
    MongoDB 필터의 부분 집합
    (동등 비교, $and/$or/$nor, $ne/$in/$nin/$not/$elemMatch/$gt/$gte/$lt/$lte/$exists/$regex)

    Raises:
        RequestValidationFailedError: 지원하지 않는 연산자
    """
    for key, expected in where.items():
        if key == "$and":
            ok = all(matches(doc, clause) for clause in expected)
        elif key == "$or":
            ok = any(matches(doc, clause) for clause in expected)
        elif key == "$nor":
            ok = not any(matches(doc, clause) for clause in expected)
        elif key.startswith("$"):
            raise RequestValidationFailedError(f"Unsupported operator '{key}'")
        else:
            ok = _match_value(_get_path(doc, key), expected)
        if not ok:
            return False
    return True


def _sort_key(value: Any):
    # None/누락 값이 먼저 오도록 하고, 타입이 섞여도 비교 가능하게 함
    if value is _MISSING or value is None:
        return (0, 0, "")
    if isinstance(value, (int, float)):
        return (1, value, "")
    return (2, 0, str(value))


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryCollection:
    """
    단일 프로세스용 문서 컬렉션.

    하나의 lock으로 모든 연산을 직렬화하여 MongoDB의 단일 문서 원자성을 재현합니다.
    unique_fields에 지정된 필드는 insert/update 시 유니크 제약을 검사합니다.
    """

    def __init__(self, unique_fields: Dict[str, Callable[[], Exception]] = None):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._unique_fields = unique_fields or {}

    def _check_unique(self, doc: Dict[str, Any], exclude_id: Optional[str] = None):
        for field, error_factory in self._unique_fields.items():
            value = doc.get(field)
            if value is None:
                continue
            for other_id, other in self._docs.items():
                if other_id != exclude_id and other.get(field) == value:
                    raise error_factory()

    def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        doc = copy.deepcopy(document)
        doc["_id"] = str(ObjectId())
        with self._lock:
            self._check_unique(doc)
            self._docs[doc["_id"]] = doc
            return copy.deepcopy(doc)

    def find_one(self, where: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            for doc in self._docs.values():
                if matches(doc, where):
                    return copy.deepcopy(doc)
        return None

    def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._docs.get(doc_id)
            return copy.deepcopy(doc) if doc else None

    def find(self, query: ListQuery) -> List[Dict[str, Any]]:
        with self._lock:
            docs = [copy.deepcopy(doc) for doc in self._docs.values() if matches(doc, query.where)]
        for key, direction in reversed(query.sort):
            docs.sort(key=lambda d: _sort_key(_get_path(d, key)), reverse=direction == -1)
        docs = docs[query.skip:]
        if query.limit:
            docs = docs[:query.limit]
        return docs

    def count(self, where: Dict[str, Any]) -> int:
        with self._lock:
            return sum(1 for doc in self._docs.values() if matches(doc, where))

    def find_one_and_modify(
        self,
        doc_id: str,
        condition: Callable[[Dict[str, Any]], bool],
        mutate: Callable[[Dict[str, Any]], None],
    ) -> Optional[Dict[str, Any]]:
        """
        조건부 원자적 업데이트. condition이 참일 때만 mutate를 적용하고 갱신 후 문서를 반환.
        조건 불일치 또는 문서 없음이면 None.
        """
        with self._lock:
            current = self._docs.get(doc_id)
            if current is None or not condition(current):
                return None
            updated = copy.deepcopy(current)
            mutate(updated)
            self._check_unique(updated, exclude_id=doc_id)
            self._docs[doc_id] = updated
            return copy.deepcopy(updated)

    def delete(self, doc_id: str) -> bool:
        with self._lock:
            return self._docs.pop(doc_id, None) is not None

    def values(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._docs.values()]


def _numeric_collation_key(value: str):
    """
    MongoDB numericOrdering collation 근사: 숫자 구간은 수로, 나머지는 대소문자 무시 문자열로 비교.
    숫자 구간은 문자보다 앞에 정렬됩니다. 동률이면 원본 문자열로 구분.
    """
    parts = []
    for digits, text in re.findall(r"(\d+)|(\D+)", value):
        parts.append((0, int(digits), "") if digits else (1, 0, text.lower()))
    return parts, value


class InMemoryUserRepository(IUserRepository):
    """
    In-Memory 사용자 저장소 구현체

    Note:
        서버 재시작 시 데이터가 초기화됩니다. 테스트와 STORE_BACKEND=memory 로컬 실행용.
    """

    def __init__(self):
        self.collection = InMemoryCollection(unique_fields={
            "id": DuplicateDisplayIdError,
            "email": DuplicateEmailError,
        })

    def find_max_display_id(self) -> Optional[str]:
        ids = [doc.get("id") for doc in self.collection.values() if isinstance(doc.get("id"), str)]
        if not ids:
            return None
        # 형식이 맞지 않는 레거시 ID도 최댓값이 될 수 있음 (Mongo 저장소와 동일)
        return max(ids, key=_numeric_collation_key)

    def insert(self, document: Dict[str, Any]) -> User:
        return User.model_validate(self.collection.insert(document))

    def get(self, user_id: str) -> Optional[User]:
        doc = self.collection.get(user_id)
        return User.model_validate(doc) if doc else None

    def find_by_email(self, email: str) -> Optional[User]:
        doc = self.collection.find_one({"email": email})
        return User.model_validate(doc) if doc else None

    def find_by_username(self, username: str) -> Optional[User]:
        doc = self.collection.find_one({"username": username})
        return User.model_validate(doc) if doc else None

    def list(self, query: ListQuery) -> List[User]:
        return [User.model_validate(doc) for doc in self.collection.find(query)]

    def count(self, where: Dict[str, Any]) -> int:
        return self.collection.count(where)

    def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        def mutate(doc):
            doc.update(fields)
            doc["updated_at"] = _now()

        return self._modify(user_id, lambda doc: True, mutate)

    def delete(self, user_id: str) -> bool:
        return self.collection.delete(user_id)

    def push_favorite(self, user_id: str, edge: FavoriteEdge) -> Optional[User]:
        def absent(doc):
            return all(str(fav.get("recipe_id")) != edge.recipe_id for fav in doc.get("favorites") or [])

        def mutate(doc):
            doc.setdefault("favorites", []).append(edge.model_dump())
            doc["updated_at"] = _now()

        return self._modify(user_id, absent, mutate)

    def pull_favorite(self, user_id: str, recipe_ref: str) -> Optional[User]:
        def present(doc):
            return any(str(fav.get("recipe_id")) == recipe_ref for fav in doc.get("favorites") or [])

        def mutate(doc):
            doc["favorites"] = [fav for fav in doc.get("favorites") or [] if str(fav.get("recipe_id")) != recipe_ref]
            doc["updated_at"] = _now()

        return self._modify(user_id, present, mutate)

    def add_created_recipe(self, user_id: str, recipe_id: str) -> Optional[User]:
        def mutate(doc):
            created = doc.setdefault("createdRecipes", [])
            if recipe_id not in created:
                created.append(recipe_id)
            doc["updated_at"] = _now()

        return self._modify(user_id, lambda doc: True, mutate)

    def remove_created_recipe(self, user_id: str, recipe_id: str) -> Optional[User]:
        def mutate(doc):
            doc["createdRecipes"] = [rid for rid in doc.get("createdRecipes") or [] if rid != recipe_id]
            doc["updated_at"] = _now()

        return self._modify(user_id, lambda doc: True, mutate)

    def _modify(self, user_id, condition, mutate) -> Optional[User]:
        doc = self.collection.find_one_and_modify(user_id, condition, mutate)
        return User.model_validate(doc) if doc else None


class InMemoryRecipeRepository(IRecipeRepository):
    """In-Memory 레시피 저장소 구현체"""

    def __init__(self):
        self.collection = InMemoryCollection(unique_fields={"id": DuplicateDisplayIdError})

    def find_max_display_id(self) -> Optional[int]:
        ids = [
            doc["id"] for doc in self.collection.values()
            if isinstance(doc.get("id"), int) and not isinstance(doc.get("id"), bool)
        ]
        return max(ids) if ids else None

    def insert(self, document: Dict[str, Any]) -> Recipe:
        return Recipe.model_validate(self.collection.insert(document))

    def get(self, recipe_id: str) -> Optional[Recipe]:
        doc = self.collection.get(recipe_id)
        return Recipe.model_validate(doc) if doc else None

    def get_many(self, recipe_ids: List[str]) -> List[Recipe]:
        return [recipe for recipe in (self.get(rid) for rid in recipe_ids) if recipe is not None]

    def list(self, query: ListQuery) -> List[Recipe]:
        return [Recipe.model_validate(doc) for doc in self.collection.find(query)]

    def count(self, where: Dict[str, Any]) -> int:
        return self.collection.count(where)

    def update(self, recipe_id: str, fields: Dict[str, Any]) -> Optional[Recipe]:
        doc = self.collection.find_one_and_modify(recipe_id, lambda doc: True, lambda doc: doc.update(fields))
        return Recipe.model_validate(doc) if doc else None

    def delete(self, recipe_id: str) -> bool:
        return self.collection.delete(recipe_id)


class InMemoryImageStore(IImageStore):
    """In-Memory 이미지 저장소. 파일명 → StoredImage"""

    def __init__(self):
        self._files: Dict[str, StoredImage] = {}
        self._lock = threading.Lock()

    def is_ready(self) -> bool:
        return True

    def find(self, filename: str) -> Optional[StoredImage]:
        with self._lock:
            image = self._files.get(filename)
            return image.model_copy() if image else None

    def save(self, filename: str, content_type: str, data: bytes) -> StoredImage:
        image = StoredImage(
            file_id=str(ObjectId()),
            filename=filename,
            content_type=content_type,
            size=len(data),
            upload_date=_now(),
            data=data,
        )
        with self._lock:
            self._files[filename] = image
        return image.model_copy(update={"data": None})

    def list(self, limit: int) -> List[StoredImage]:
        with self._lock:
            images = list(self._files.values())[:limit]
        return [image.model_copy(update={"data": None}) for image in images]
