from pydantic import BaseModel, Field, AliasChoices
from typing import List, Optional, Union


# Auth
class RegisterRequest(BaseModel):
    """회원가입 요청. 필수 여부는 validate 계층에서 검사 (명시적 에러 메시지 유지)"""
    username: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Login email (stored lower-cased)")
    password: Optional[str] = Field(None, description="Plain password, hashed before persisting")


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# Users
class UserCreateRequest(BaseModel):
    id: Optional[str] = Field(None, description="Display id (u001 ...). Allocated when omitted")
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdateRequest(BaseModel):
    """favorites/createdRecipes는 관계 API로만 변경 가능하므로 받지 않음"""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = Field(None, description="Changed only when provided")


class FavoriteAddRequest(BaseModel):
    # 숫자/문자열 모두 받아 두고 형식 검사는 reference validator에서 수행 (InvalidReference 400)
    recipe_id: Optional[Union[str, int]] = Field(
        None,
        validation_alias=AliasChoices("recipe_id", "recipeId"),
        description="Recipe internal identifier",
    )
    title: Optional[str] = Field(None, description="Overrides the recipe title snapshot")


# Recipes
class RecipeCreateRequest(BaseModel):
    id: Optional[int] = Field(None, ge=0, description="Display id. Allocated when omitted")
    title: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    instructions: Optional[str] = None
    imageName: Optional[str] = None
    extractedIngredients: List[str] = Field(default_factory=list)


class RecipeUpdateRequest(BaseModel):
    id: Optional[int] = Field(None, ge=0, description="New display id (conflict checked)")
    title: Optional[str] = None
    ingredients: Optional[List[str]] = None
    instructions: Optional[str] = None
    imageName: Optional[str] = None
    extractedIngredients: Optional[List[str]] = None


class AuthoredRecipeRequest(BaseModel):
    """/user-recipes 생성/수정 요청. 표시용 ID는 항상 시스템이 할당."""
    title: Optional[str] = None
    ingredients: Optional[List[str]] = None
    instructions: Optional[str] = None
    imageName: Optional[str] = None
    extractedIngredients: Optional[List[str]] = None
