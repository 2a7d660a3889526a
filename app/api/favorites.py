from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_base_url, get_current_user, get_relationship_manager
from app.core.response import ApiResponse, success_response
from app.services.relationship_manager import RelationshipManager

router = APIRouter(
    prefix="/api/favorites",
    tags=["Favorites"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=ApiResponse)
def get_favorites(
    claims: dict = Depends(get_current_user),
    base_url: str = Depends(get_base_url),
    relationships: RelationshipManager = Depends(get_relationship_manager),
):
    """
    즐겨찾기 목록 조회

    - **Header(Authorization)**: Bearer 토큰

    Returns:
        200 OK: 레시피 목록 (저장 순서, saved_at/imageUrl 포함). 삭제된 레시피는 제외
    """
    pairs = relationships.list_favorite_recipes(claims["userId"])
    data = [{**recipe.to_public(base_url), "saved_at": edge.saved_at} for edge, recipe in pairs]
    return success_response(data=data, message="Favorites fetched successfully")


@router.get("/check/{recipe_id}", response_model=ApiResponse)
def check_favorite(
    recipe_id: str,
    claims: dict = Depends(get_current_user),
    relationships: RelationshipManager = Depends(get_relationship_manager),
):
    is_favorited = relationships.check_favorite(claims["userId"], recipe_id)
    return success_response(data={"isFavorited": is_favorited}, message="Favorite status checked")


@router.post("/{recipe_id}", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
def add_favorite(
    recipe_id: str,
    claims: dict = Depends(get_current_user),
    relationships: RelationshipManager = Depends(get_relationship_manager),
):
    """
    즐겨찾기 추가

    Returns:
        201 Created: {favorites: [...]}
        409: 이미 즐겨찾기에 있음
    """
    user = relationships.add_favorite(claims["userId"], recipe_id)
    return success_response(
        data={"favorites": [edge.model_dump() for edge in user.favorites]},
        message="Recipe added to favorites",
    )


@router.delete("/{recipe_id}", response_model=ApiResponse)
def remove_favorite(
    recipe_id: str,
    claims: dict = Depends(get_current_user),
    relationships: RelationshipManager = Depends(get_relationship_manager),
):
    """즐겨찾기에 없으면 404"""
    user = relationships.remove_favorite(claims["userId"], recipe_id)
    return success_response(
        data={"favorites": [edge.model_dump() for edge in user.favorites]},
        message="Recipe removed from favorites",
    )
