from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Recipe(BaseModel):
    """recipes 컬렉션 문서"""
    model_config = ConfigDict(populate_by_name=True)

    internal_id: str = Field(alias="_id", description="Store-assigned identifier")
    display_id: Optional[int] = Field(None, alias="id", description="Sequential numeric display id")
    title: str
    ingredients: List[str] = Field(default_factory=list)
    instructions: str = ""
    image_name: str = Field("", alias="imageName", description="Blob key in the image store")
    extracted_ingredients: List[str] = Field(default_factory=list, alias="extractedIngredients")
    author_ref: Optional[str] = Field(None, alias="createdBy", description="Author's user internal id")
    is_user_authored: bool = Field(False, alias="isUserCreated")

    @field_validator("internal_id", mode="before")
    @classmethod
    def stringify_internal_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("author_ref", mode="before")
    @classmethod
    def stringify_author_ref(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("ingredients", "extracted_ingredients", mode="before")
    @classmethod
    def handle_null_lists(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("instructions", "image_name", mode="before")
    @classmethod
    def handle_null_text(cls, v: Any) -> Any:
        return "" if v is None else v

    def image_url(self, base_url: Optional[str]) -> Optional[str]:
        if not self.image_name or base_url is None:
            return None
        return f"{base_url.rstrip('/')}/api/gridfs-images/{self.image_name}"

    def to_public(self, base_url: Optional[str] = None) -> Dict[str, Any]:
        """키 순서 고정 직렬화 (ID → 스칼라 → 배열)"""
        data: Dict[str, Any] = {
            "_id": self.internal_id,
            "id": self.display_id,
            "title": self.title,
            "instructions": self.instructions,
            "imageName": self.image_name,
        }
        url = self.image_url(base_url)
        if url:
            data["imageUrl"] = url
        data["createdBy"] = self.author_ref
        data["isUserCreated"] = self.is_user_authored
        data["ingredients"] = list(self.ingredients)
        data["extractedIngredients"] = list(self.extracted_ingredients)
        return data

    def to_reference(self) -> Dict[str, Any]:
        """프로필 조회(/auth/me)에서 사용하는 축약형"""
        return {
            "_id": self.internal_id,
            "id": self.display_id,
            "title": self.title,
            "imageName": self.image_name,
        }
