from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.favorite import FavoriteEdge


class User(BaseModel):
    """users 컬렉션 문서 (저장소 필드명 = 응답 필드명)"""
    model_config = ConfigDict(populate_by_name=True)

    internal_id: str = Field(alias="_id", description="Store-assigned identifier")
    display_id: Optional[str] = Field(None, alias="id", description="Sequential display id (u001, u002, ...)")
    username: str
    email: str
    password_digest: str = Field("", alias="password", description="bcrypt digest")
    favorites: List[FavoriteEdge] = Field(default_factory=list)
    created_recipes: List[str] = Field(default_factory=list, alias="createdRecipes")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("internal_id", mode="before")
    @classmethod
    def stringify_internal_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("created_recipes", mode="before")
    @classmethod
    def stringify_created_recipes(cls, v: Any) -> List[str]:
        if v is None:
            return []
        return [str(item) for item in v]

    @field_validator("favorites", mode="before")
    @classmethod
    def handle_null_favorites(cls, v: Any) -> Any:
        return [] if v is None else v

    def has_favorite(self, recipe_ref: Any) -> bool:
        """recipe_ref 타입(ObjectId, int, str)과 무관하게 문자열로 정규화하여 비교"""
        target = str(recipe_ref)
        return any(edge.recipe_id == target for edge in self.favorites)

    def to_public(self) -> Dict[str, Any]:
        """
        단건 조회용 직렬화. 키 순서 고정 (ID → 스칼라 → 배열/타임스탬프).
        비밀번호 digest는 어떤 응답에도 포함하지 않습니다.
        """
        return {
            "_id": self.internal_id,
            "id": self.display_id,
            "username": self.username,
            "email": self.email,
            "favorites": [edge.model_dump() for edge in self.favorites],
            "createdRecipes": list(self.created_recipes),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_summary(self) -> Dict[str, Any]:
        return {
            "_id": self.internal_id,
            "id": self.display_id,
            "username": self.username,
            "email": self.email,
        }
