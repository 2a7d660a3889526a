"""
즐겨찾기/작성자 관계 관리 서비스

사용자 ↔ 레시피 간 두 종류의 관계를 관리합니다.
- 즐겨찾기: User.favorites 에 {recipe_id, title, saved_at} 레코드로 저장
- 작성자: User.createdRecipes 와 Recipe.createdBy

모든 변경은 사용자 문서 하나에 대한 조건부 원자적 업데이트 한 번으로 수행합니다.
(읽기 → 메모리에서 수정 → 다시 쓰기 방식은 같은 사용자에 대한 동시 요청에서 갱신 손실이 생김)
업데이트가 적용되지 않은 경우에만 사용자를 다시 읽어 실패 원인을 구분합니다.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from app.exception.common.auth_exception import RecipeForbiddenError
from app.exception.common.resource_exception import (
    AlreadyFavoritedError,
    FavoriteNotFoundError,
    RecipeNotFoundError,
    UserNotFoundError,
)
from app.models.favorite import FavoriteEdge
from app.models.recipe import Recipe
from app.models.user import User
from app.repositories.base import IRecipeRepository, IUserRepository
from app.validate.reference_validator import require_recipe_ref, require_user_ref

logger = logging.getLogger(__name__)


class RelationshipManager:
    """
    즐겨찾기 추가/삭제/확인과 작성자 등록/권한 확인을 담당.

    Attributes:
        user_repo: 사용자 저장소 (조건부 push/pull 제공)
        recipe_repo: 레시피 저장소 (참조 해석용)
    """

    def __init__(self, user_repo: IUserRepository, recipe_repo: IRecipeRepository):
        self.user_repo = user_repo
        self.recipe_repo = recipe_repo

    def add_favorite(self, user_ref: Any, recipe_ref: Any, title_override: Optional[str] = None) -> User:
        """
        즐겨찾기 추가

        Args:
            user_ref: 사용자 내부 식별자
            recipe_ref: 레시피 내부 식별자 (숫자형 표시 ID는 거부)
            title_override: 지정 시 레시피 제목 대신 저장할 제목

        Returns:
            User: 갱신된 사용자

        Raises:
            InvalidReferenceError: 식별자 형식 오류 (저장소 호출 전)
            RecipeNotFoundError: 레시피 없음
            UserNotFoundError: 사용자 없음
            AlreadyFavoritedError: 이미 즐겨찾기에 있음
        """
        user_id = require_user_ref(user_ref)
        recipe_id = require_recipe_ref(recipe_ref)

        recipe = self.recipe_repo.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError()

        title = title_override.strip() if title_override and title_override.strip() else recipe.title
        edge = FavoriteEdge(recipe_id=recipe.internal_id, title=title, saved_at=datetime.now(timezone.utc))

        updated = self.user_repo.push_favorite(user_id, edge)
        if updated is not None:
            logger.info(f"Favorite added: user={user_id} recipe={recipe.internal_id}")
            return updated

        # 조건 불일치: 사용자가 없거나 이미 같은 레시피가 있음
        current = self.user_repo.get(user_id)
        if current is not None and current.has_favorite(recipe.internal_id):
            raise AlreadyFavoritedError()
        raise UserNotFoundError()

    def remove_favorite(self, user_ref: Any, recipe_ref: Any) -> User:
        """
        즐겨찾기 삭제. 없는 항목을 삭제하면 성공으로 취급하지 않습니다.

        Raises:
            InvalidReferenceError, UserNotFoundError, FavoriteNotFoundError
        """
        user_id = require_user_ref(user_ref)
        recipe_id = require_recipe_ref(recipe_ref)

        updated = self.user_repo.pull_favorite(user_id, recipe_id)
        if updated is not None:
            logger.info(f"Favorite removed: user={user_id} recipe={recipe_id}")
            return updated

        if self.user_repo.get(user_id) is None:
            raise UserNotFoundError()
        raise FavoriteNotFoundError()

    def check_favorite(self, user_ref: Any, recipe_ref: Any) -> bool:
        user_id = require_user_ref(user_ref)
        recipe_id = require_recipe_ref(recipe_ref)

        user = self.user_repo.get(user_id)
        if user is None:
            raise UserNotFoundError()
        return user.has_favorite(recipe_id)

    def list_favorite_recipes(self, user_ref: Any) -> List[tuple]:
        """
        즐겨찾기 레시피 목록 (저장 순서 유지)

        Returns:
            List[tuple]: (FavoriteEdge, Recipe) 쌍. 삭제된 레시피를 가리키는 항목은 제외
        """
        user_id = require_user_ref(user_ref)
        user = self.user_repo.get(user_id)
        if user is None:
            raise UserNotFoundError()

        recipes = {r.internal_id: r for r in self.recipe_repo.get_many([e.recipe_id for e in user.favorites])}
        return [(edge, recipes[edge.recipe_id]) for edge in user.favorites if edge.recipe_id in recipes]

    def register_authorship(self, user_ref: Any, recipe_internal_id: str) -> User:
        user_id = require_user_ref(user_ref)
        updated = self.user_repo.add_created_recipe(user_id, str(recipe_internal_id))
        if updated is None:
            raise UserNotFoundError()
        return updated

    def unregister_authorship(self, user_ref: Any, recipe_internal_id: str) -> None:
        """작성 레시피 삭제 시 createdRecipes 에서 제거. 작성자 계정이 이미 없으면 무시"""
        user_id = require_user_ref(user_ref)
        if self.user_repo.remove_created_recipe(user_id, str(recipe_internal_id)) is None:
            logger.warning(f"Author {user_id} not found while unregistering recipe {recipe_internal_id}")

    def authorize_edit(self, recipe: Recipe, requesting_user_ref: Any) -> None:
        """
        작성자 본인만 수정 가능. createdBy가 없는 카탈로그 레시피는 누구도 수정할 수 없음

        Raises:
            RecipeForbiddenError
        """
        if recipe.author_ref is None or str(recipe.author_ref) != str(requesting_user_ref):
            logger.warning(f"Forbidden recipe mutation: recipe={recipe.internal_id} user={requesting_user_ref}")
            raise RecipeForbiddenError()

    def authorize_delete(self, recipe: Recipe, requesting_user_ref: Any) -> None:
        self.authorize_edit(recipe, requesting_user_ref)
