"""
레시피 서비스

- 카탈로그 레시피(/recipes): 인증 없음, 호출자가 표시 ID를 지정하거나 시스템이 할당
- 사용자 작성 레시피(/user-recipes): 인증 필요, 표시 ID는 항상 AUTHORED_RECIPE_ID_FLOOR 이상으로 할당,
  수정/삭제는 작성자 본인만 가능
"""

import logging
from typing import Any, Dict, List, Optional

from app.exception.base_exception import BaseCustomException
from app.exception.common.resource_exception import (
    DuplicateDisplayIdError,
    RecipeNotFoundError,
    UserNotFoundError,
)
from app.models.dto import AuthoredRecipeRequest, RecipeCreateRequest, RecipeUpdateRequest
from app.models.recipe import Recipe
from app.repositories.base import IRecipeRepository, IUserRepository
from app.services.identity_allocator import IdentityAllocator
from app.services.relationship_manager import RelationshipManager
from app.utils.query_params import ListQuery
from app.validate.reference_validator import require_recipe_ref, require_user_ref
from app.validate.request_validator import validate_title

logger = logging.getLogger(__name__)


class RecipeService:
    def __init__(
        self,
        recipe_repo: IRecipeRepository,
        user_repo: IUserRepository,
        allocator: IdentityAllocator,
        relationships: RelationshipManager,
    ):
        self.recipe_repo = recipe_repo
        self.user_repo = user_repo
        self.allocator = allocator
        self.relationships = relationships

    # --- 카탈로그 ---

    def list_recipes(self, query: ListQuery) -> List[Recipe]:
        return self.recipe_repo.list(query)

    def count_recipes(self, where: Dict[str, Any]) -> int:
        return self.recipe_repo.count(where)

    def get_recipe(self, recipe_ref: Any) -> Recipe:
        recipe = self.recipe_repo.get(require_recipe_ref(recipe_ref))
        if recipe is None:
            raise RecipeNotFoundError()
        return recipe

    def create_recipe(self, request: RecipeCreateRequest) -> Recipe:
        title = validate_title(request.title)

        display_id = request.id
        if display_id is None:
            display_id = self.allocator.allocate_recipe_id()
        else:
            self._ensure_display_id_free(display_id)

        recipe = self.recipe_repo.insert({
            "id": display_id,
            "title": title,
            "ingredients": list(request.ingredients or []),
            "instructions": request.instructions or "",
            "imageName": request.imageName or "",
            "extractedIngredients": list(request.extractedIngredients or []),
        })
        logger.info(f"Recipe created: {recipe.internal_id} ({display_id})")
        return recipe

    def update_recipe(self, recipe_ref: Any, request: RecipeUpdateRequest) -> Recipe:
        recipe = self.get_recipe(recipe_ref)
        title = validate_title(request.title)

        fields: Dict[str, Any] = {"title": title}
        if request.id is not None and request.id != recipe.display_id:
            self._ensure_display_id_free(request.id, exclude=recipe.internal_id)
            fields["id"] = request.id
        fields.update(_optional_fields(request))

        updated = self.recipe_repo.update(recipe.internal_id, fields)
        if updated is None:
            raise RecipeNotFoundError()
        return updated

    def delete_recipe(self, recipe_ref: Any) -> None:
        recipe_id = require_recipe_ref(recipe_ref)
        if not self.recipe_repo.delete(recipe_id):
            raise RecipeNotFoundError()
        logger.info(f"Recipe deleted: {recipe_id}")

    def _ensure_display_id_free(self, display_id: int, exclude: Optional[str] = None):
        where: Dict[str, Any] = {"id": display_id}
        if exclude is not None:
            where["_id"] = {"$ne": exclude}
        if self.recipe_repo.count(where) > 0:
            raise DuplicateDisplayIdError("Recipe ID already exists")

    # --- 사용자 작성 레시피 ---

    def list_authored_recipes(self, user_ref: Any) -> List[Recipe]:
        """createdRecipes 순서대로 반환. 이미 삭제된 레시피는 건너뜀"""
        user = self.user_repo.get(require_user_ref(user_ref))
        if user is None:
            raise UserNotFoundError()
        recipes = {r.internal_id: r for r in self.recipe_repo.get_many(user.created_recipes)}
        return [recipes[rid] for rid in user.created_recipes if rid in recipes]

    def create_authored_recipe(self, user_ref: Any, request: AuthoredRecipeRequest) -> Recipe:
        """
        작성 레시피 생성 후 작성자의 createdRecipes 에 등록

        Raises:
            UserNotFoundError: 토큰의 사용자가 더 이상 없음
            DuplicateDisplayIdError: 동시 생성 경합에서 짐
            UserNotFoundError: 생성 도중 작성자가 삭제됨 (생성된 레시피는 삭제)
        """
        user_id = require_user_ref(user_ref)
        title = validate_title(request.title)
        if self.user_repo.get(user_id) is None:
            raise UserNotFoundError()

        recipe = self.recipe_repo.insert({
            "id": self.allocator.allocate_authored_recipe_id(),
            "title": title,
            "ingredients": list(request.ingredients or []),
            "instructions": request.instructions or "",
            "imageName": request.imageName or "",
            "extractedIngredients": list(request.extractedIngredients or []),
            "createdBy": user_id,
            "isUserCreated": True,
        })
        try:
            self.relationships.register_authorship(user_id, recipe.internal_id)
        except BaseCustomException:
            # 작성자 연결에 실패하면 고아 레시피가 남지 않도록 되돌림
            logger.warning(f"Authorship registration failed, removing recipe {recipe.internal_id}")
            self.recipe_repo.delete(recipe.internal_id)
            raise
        logger.info(f"Authored recipe created: {recipe.internal_id} ({recipe.display_id}) by {user_id}")
        return recipe

    def update_authored_recipe(self, user_ref: Any, recipe_ref: Any, request: AuthoredRecipeRequest) -> Recipe:
        recipe = self.get_recipe(recipe_ref)
        self.relationships.authorize_edit(recipe, require_user_ref(user_ref))

        fields = _optional_fields(request)
        if request.title is not None:
            fields["title"] = validate_title(request.title)
        if not fields:
            return recipe

        updated = self.recipe_repo.update(recipe.internal_id, fields)
        if updated is None:
            raise RecipeNotFoundError()
        return updated

    def delete_authored_recipe(self, user_ref: Any, recipe_ref: Any) -> None:
        user_id = require_user_ref(user_ref)
        recipe = self.get_recipe(recipe_ref)
        self.relationships.authorize_delete(recipe, user_id)

        self.relationships.unregister_authorship(user_id, recipe.internal_id)
        if not self.recipe_repo.delete(recipe.internal_id):
            raise RecipeNotFoundError()
        logger.info(f"Authored recipe deleted: {recipe.internal_id} by {user_id}")


def _optional_fields(request) -> Dict[str, Any]:
    """지정된(None이 아닌) 본문 필드만 추출"""
    fields: Dict[str, Any] = {}
    for name in ("ingredients", "instructions", "imageName", "extractedIngredients"):
        value = getattr(request, name)
        if value is not None:
            fields[name] = value
    return fields
