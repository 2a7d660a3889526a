from typing import Protocol, List, Optional, Dict, Any

from app.models.favorite import FavoriteEdge
from app.models.image import StoredImage
from app.models.recipe import Recipe
from app.models.user import User
from app.utils.query_params import ListQuery


class IUserRepository(Protocol):
    """사용자 저장소 인터페이스 (Repository Pattern Protocol)

    모든 변경 연산은 단일 문서에 대한 원자적 조건부 업데이트 한 번으로 수행됩니다.
    저장소 호출 실패는 StoreUnavailableError, 유니크 인덱스 위반은
    DuplicateDisplayIdError / DuplicateEmailError 로 변환되어 전파됩니다.
    """

    def find_max_display_id(self) -> Optional[str]:
        """
        가장 큰 표시용 ID 조회 (내림차순 정렬 top-1, 숫자 부분 기준 비교)

        Returns:
            Optional[str]: 예) "u042". 표시용 ID를 가진 사용자가 없으면 None
        """
        ...

    def insert(self, document: Dict[str, Any]) -> User:
        """새 사용자 문서 저장 후 내부 ID가 채워진 User 반환"""
        ...

    def get(self, user_id: str) -> Optional[User]:
        ...

    def find_by_email(self, email: str) -> Optional[User]:
        ...

    def find_by_username(self, username: str) -> Optional[User]:
        ...

    def list(self, query: ListQuery) -> List[User]:
        ...

    def count(self, where: Dict[str, Any]) -> int:
        ...

    def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        """
        username/email/password 등 스칼라 필드 갱신 ($set + updated_at)

        Returns:
            Optional[User]: 갱신 후 문서. 사용자가 없으면 None
        """
        ...

    def delete(self, user_id: str) -> bool:
        ...

    def push_favorite(self, user_id: str, edge: FavoriteEdge) -> Optional[User]:
        """
        조건부 추가: "user_id 문서이면서 favorites에 edge.recipe_id가 아직 없을 때만" append

        Returns:
            Optional[User]: 적용된 경우 갱신 후 문서, 조건 불일치(사용자 없음 또는 이미 존재)면 None
        """
        ...

    def pull_favorite(self, user_id: str, recipe_ref: str) -> Optional[User]:
        """
        조건부 제거: "user_id 문서이면서 favorites에 recipe_ref가 있을 때만" pull

        Returns:
            Optional[User]: 적용된 경우 갱신 후 문서, 조건 불일치면 None
        """
        ...

    def add_created_recipe(self, user_id: str, recipe_id: str) -> Optional[User]:
        """createdRecipes에 중복 없이 추가 ($addToSet). 사용자가 없으면 None"""
        ...

    def remove_created_recipe(self, user_id: str, recipe_id: str) -> Optional[User]:
        ...


class IRecipeRepository(Protocol):
    """레시피 저장소 인터페이스"""

    def find_max_display_id(self) -> Optional[int]:
        """가장 큰 숫자 표시용 ID. 레시피가 없으면 None"""
        ...

    def insert(self, document: Dict[str, Any]) -> Recipe:
        ...

    def get(self, recipe_id: str) -> Optional[Recipe]:
        ...

    def get_many(self, recipe_ids: List[str]) -> List[Recipe]:
        """내부 ID 목록으로 조회. 존재하지 않는 ID는 결과에서 빠지며 순서는 보장하지 않음"""
        ...

    def list(self, query: ListQuery) -> List[Recipe]:
        ...

    def count(self, where: Dict[str, Any]) -> int:
        ...

    def update(self, recipe_id: str, fields: Dict[str, Any]) -> Optional[Recipe]:
        ...

    def delete(self, recipe_id: str) -> bool:
        ...


class IImageStore(Protocol):
    """이름(filename)으로 접근하는 바이너리 이미지 저장소"""

    def is_ready(self) -> bool:
        ...

    def find(self, filename: str) -> Optional[StoredImage]:
        """파일명으로 조회 (data 포함). 없으면 None"""
        ...

    def save(self, filename: str, content_type: str, data: bytes) -> StoredImage:
        """같은 파일명이 있으면 교체"""
        ...

    def list(self, limit: int) -> List[StoredImage]:
        ...
