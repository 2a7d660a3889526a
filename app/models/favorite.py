from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FavoriteEdge(BaseModel):
    """사용자 즐겨찾기 목록(User.favorites)에 포함되는 레코드.

    Args:
        recipe_id (str): 레시피 내부 식별자 (24자리 hex ObjectId 문자열)
        title (str): 즐겨찾기 시점의 레시피 제목 스냅샷. 이후 레시피 제목이 바뀌어도 갱신되지 않음.
        saved_at (datetime): 즐겨찾기 추가 시각

    한 사용자의 favorites에는 같은 recipe_id가 두 번 들어가지 않습니다.
    """
    model_config = ConfigDict(populate_by_name=True)

    recipe_id: str = Field(description="Recipe internal identifier")
    title: str = Field(description="Recipe title snapshot")
    saved_at: datetime = Field(description="When the recipe was saved")

    @field_validator("recipe_id", mode="before")
    @classmethod
    def normalize_recipe_id(cls, v: Any) -> str:
        """저장소에서 ObjectId/정수로 읽혀도 비교는 항상 문자열 기준"""
        return str(v)
