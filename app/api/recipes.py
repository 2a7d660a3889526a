from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_base_url, get_count_filter, get_list_query, get_recipe_service
from app.core.response import ApiResponse, success_response
from app.models.dto import RecipeCreateRequest, RecipeUpdateRequest
from app.services.recipe_service import RecipeService
from app.utils.query_params import ListQuery, apply_select, parse_list_query

router = APIRouter(
    prefix="/api/recipes",
    tags=["Recipes"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=ApiResponse)
def list_recipes(
    query: ListQuery = Depends(get_list_query),
    count: bool = Query(False, description="true면 목록 대신 where에 맞는 개수만 반환"),
    base_url: str = Depends(get_base_url),
    service: RecipeService = Depends(get_recipe_service),
):
    """레시피 목록 (where/sort/select/skip/limit). data는 리스트, count=true면 숫자"""
    if count:
        return success_response(data=service.count_recipes(query.where))
    recipes = service.list_recipes(query)
    return success_response(data=[apply_select(r.to_public(base_url), query.select) for r in recipes])


@router.get("/count", response_model=ApiResponse)
def count_recipes(
    where: dict = Depends(get_count_filter),
    service: RecipeService = Depends(get_recipe_service),
):
    return success_response(data={"count": service.count_recipes(where)})


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
def create_recipe(
    body: RecipeCreateRequest,
    base_url: str = Depends(get_base_url),
    service: RecipeService = Depends(get_recipe_service),
):
    """
    카탈로그 레시피 생성

    - **id**: 표시용 숫자 ID (생략 시 최댓값 + 1, 첫 레시피는 0)
    - **title**: 필수
    """
    recipe = service.create_recipe(body)
    return success_response(data=recipe.to_public(base_url), message="Recipe created")


@router.get("/{recipe_id}", response_model=ApiResponse)
def get_recipe(
    recipe_id: str,
    select: str | None = Query(None, description="JSON 필드 선택"),
    base_url: str = Depends(get_base_url),
    service: RecipeService = Depends(get_recipe_service),
):
    projection = parse_list_query(select=select).select
    recipe = service.get_recipe(recipe_id)
    return success_response(data=apply_select(recipe.to_public(base_url), projection))


@router.put("/{recipe_id}", response_model=ApiResponse)
def update_recipe(
    recipe_id: str,
    body: RecipeUpdateRequest,
    base_url: str = Depends(get_base_url),
    service: RecipeService = Depends(get_recipe_service),
):
    """title 필수. id를 바꾸면 다른 레시피와 중복 여부를 확인 (중복이면 409)"""
    recipe = service.update_recipe(recipe_id, body)
    return success_response(data=recipe.to_public(base_url), message="Recipe updated")


@router.delete("/{recipe_id}", response_model=ApiResponse)
def delete_recipe(recipe_id: str, service: RecipeService = Depends(get_recipe_service)):
    service.delete_recipe(recipe_id)
    return success_response(data=[], message="Recipe deleted")
