from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import (
    get_count_filter,
    get_list_query,
    get_relationship_manager,
    get_user_service,
)
from app.core.response import ApiResponse, success_response
from app.models.dto import FavoriteAddRequest, UserCreateRequest, UserUpdateRequest
from app.services.relationship_manager import RelationshipManager
from app.services.user_service import UserService
from app.utils.query_params import ListQuery, apply_select, parse_list_query
from app.validate.request_validator import require_field

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=ApiResponse)
def list_users(
    query: ListQuery = Depends(get_list_query),
    count: bool = Query(False, description="true면 목록 대신 where에 맞는 개수만 반환"),
    service: UserService = Depends(get_user_service),
):
    """사용자 목록 (where/sort/select/skip/limit). data는 리스트, count=true면 숫자"""
    if count:
        return success_response(data=service.count_users(query.where))
    users = service.list_users(query)
    return success_response(data=[apply_select(user.to_public(), query.select) for user in users])


@router.get("/count", response_model=ApiResponse)
def count_users(
    where: dict = Depends(get_count_filter),
    service: UserService = Depends(get_user_service),
):
    return success_response(data={"count": service.count_users(where)})


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
def create_user(body: UserCreateRequest, service: UserService = Depends(get_user_service)):
    """
    사용자 생성

    - **id**: 표시용 ID (생략 시 u001부터 순차 할당)
    - 표시용 ID/이메일 중복이면 409
    """
    user = service.create_user(body)
    return success_response(data=user.to_public(), message="User created")


@router.get("/{user_id}", response_model=ApiResponse)
def get_user(
    user_id: str,
    select: str | None = Query(None, description="JSON 필드 선택"),
    service: UserService = Depends(get_user_service),
):
    """단건 조회. 키 순서 고정: _id, id, username, email, favorites, createdRecipes, created_at, updated_at"""
    projection = parse_list_query(select=select).select
    user = service.get_user(user_id)
    return success_response(data=apply_select(user.to_public(), projection))


@router.put("/{user_id}", response_model=ApiResponse)
def update_user(user_id: str, body: UserUpdateRequest, service: UserService = Depends(get_user_service)):
    """username/email(필수), password(선택)만 변경. 즐겨찾기는 /favorites 경로로만 변경"""
    user = service.update_user(user_id, body)
    return success_response(data=user.to_public(), message="User updated")


@router.delete("/{user_id}", response_model=ApiResponse)
def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    service.delete_user(user_id)
    return success_response(data=[], message="User deleted")


@router.post("/{user_id}/favorites", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
def add_favorite_by_body(
    user_id: str,
    body: FavoriteAddRequest,
    relationships: RelationshipManager = Depends(get_relationship_manager),
):
    """
    즐겨찾기 추가 (본문)

    - **recipe_id** 또는 **recipeId**: 레시피 내부 식별자 (24자리 hex)
    - **title**: 지정 시 레시피 제목 대신 저장
    """
    recipe_ref = require_field(body.recipe_id, "recipe_id")
    user = relationships.add_favorite(user_id, recipe_ref, body.title)
    return success_response(data=user.to_public(), message="Favorite added")


@router.post("/{user_id}/favorites/{recipe_ref}", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
def add_favorite(
    user_id: str,
    recipe_ref: str,
    relationships: RelationshipManager = Depends(get_relationship_manager),
):
    user = relationships.add_favorite(user_id, recipe_ref)
    return success_response(data=user.to_public(), message="Favorite added")


@router.delete("/{user_id}/favorites/{recipe_ref}", response_model=ApiResponse)
def remove_favorite(
    user_id: str,
    recipe_ref: str,
    relationships: RelationshipManager = Depends(get_relationship_manager),
):
    """없는 즐겨찾기를 삭제하면 404 (두 번째 삭제도 실패)"""
    user = relationships.remove_favorite(user_id, recipe_ref)
    return success_response(data=user.to_public(), message="Favorite removed")
