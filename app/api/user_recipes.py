from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_base_url, get_current_user, get_recipe_service
from app.core.response import ApiResponse, success_response
from app.models.dto import AuthoredRecipeRequest
from app.services.recipe_service import RecipeService

router = APIRouter(
    prefix="/api/user-recipes",
    tags=["User Recipes"],
    responses={401: {"description": "Unauthorized"}, 403: {"description": "Not the author"}},
)


@router.get("", response_model=ApiResponse)
def list_my_recipes(
    claims: dict = Depends(get_current_user),
    base_url: str = Depends(get_base_url),
    service: RecipeService = Depends(get_recipe_service),
):
    """토큰 사용자가 작성한 레시피 목록 (imageUrl 포함)"""
    recipes = service.list_authored_recipes(claims["userId"])
    return success_response(
        data=[recipe.to_public(base_url) for recipe in recipes],
        message="User recipes fetched successfully",
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
def create_my_recipe(
    body: AuthoredRecipeRequest,
    claims: dict = Depends(get_current_user),
    base_url: str = Depends(get_base_url),
    service: RecipeService = Depends(get_recipe_service),
):
    """
    레시피 작성

    - 표시용 ID는 시스템이 할당 (10000 이상)
    - 작성자의 createdRecipes에 등록
    """
    recipe = service.create_authored_recipe(claims["userId"], body)
    return success_response(data=recipe.to_public(base_url), message="Recipe created successfully")


@router.put("/{recipe_id}", response_model=ApiResponse)
def update_my_recipe(
    recipe_id: str,
    body: AuthoredRecipeRequest,
    claims: dict = Depends(get_current_user),
    base_url: str = Depends(get_base_url),
    service: RecipeService = Depends(get_recipe_service),
):
    """작성자 본인만 수정 가능 (아니면 403). 지정한 필드만 변경"""
    recipe = service.update_authored_recipe(claims["userId"], recipe_id, body)
    return success_response(data=recipe.to_public(base_url), message="Recipe updated successfully")


@router.delete("/{recipe_id}", response_model=ApiResponse)
def delete_my_recipe(
    recipe_id: str,
    claims: dict = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
):
    service.delete_authored_recipe(claims["userId"], recipe_id)
    return success_response(message="Recipe deleted successfully")
