"""
표시용 ID 할당 서비스

저장소 내부 식별자(ObjectId)와 별개로, 클라이언트에 노출되는 순차 ID를 발급합니다.
- 사용자: u001, u002, ... (최소 3자리, 999 이후에는 자릿수가 늘어남)
- 레시피: 0, 1, 2, ... (카탈로그), 사용자 작성 레시피는 10000부터

할당은 "현재 최댓값 조회 → +1" 두 단계로 이루어지며 잠금을 잡지 않습니다.
동시에 같은 값을 계산한 두 요청 중 하나는 저장 시 유니크 인덱스에 막혀
DuplicateDisplayIdError(409)로 호출자에게 전달됩니다. 재시도는 호출자 몫입니다.
"""

import logging
import re
from typing import Optional

from app.core.config import AUTHORED_RECIPE_ID_FLOOR
from app.repositories.base import IRecipeRepository, IUserRepository

logger = logging.getLogger(__name__)

USER_ID_PREFIX = "u"
USER_ID_MIN_WIDTH = 3
_USER_ID_PATTERN = re.compile(r"^u(\d+)$")


def next_user_display_id(current_max: Optional[str]) -> str:
    """
    다음 사용자 표시 ID 계산

    Args:
        current_max: 현재 가장 큰 사용자 표시 ID. 없으면 None

    Returns:
        str: 예) "u042" → "u043", None → "u001", "u999" → "u1000"
            형식이 맞지 않는 레거시 값("xyz")이면 "u001"
    """
    first = f"{USER_ID_PREFIX}{1:0{USER_ID_MIN_WIDTH}d}"
    if current_max is None:
        return first

    match = _USER_ID_PATTERN.match(current_max)
    if not match:
        logger.warning(f"Malformed user display id {current_max!r}, restarting from {first}")
        return first

    return f"{USER_ID_PREFIX}{int(match.group(1)) + 1:0{USER_ID_MIN_WIDTH}d}"


def next_recipe_display_id(current_max: Optional[int]) -> int:
    """카탈로그 레시피: 최댓값 + 1, 레시피가 없으면 0"""
    if current_max is None:
        return 0
    return current_max + 1


def next_authored_recipe_display_id(current_max: Optional[int], floor: int = AUTHORED_RECIPE_ID_FLOOR) -> int:
    """
    사용자 작성 레시피: max(실제 최댓값 + 1, floor)

    >>> next_authored_recipe_display_id(4999)
    10000
    >>> next_authored_recipe_display_id(10005)
    10006
    """
    return max(next_recipe_display_id(current_max), floor)


class IdentityAllocator:
    """
    저장소에서 현재 최댓값을 읽어 다음 표시 ID를 발급.
    최댓값 조회가 실패하면 StoreUnavailableError가 그대로 전파되어 생성이 중단됩니다.
    """

    def __init__(self, user_repo: IUserRepository, recipe_repo: IRecipeRepository):
        self.user_repo = user_repo
        self.recipe_repo = recipe_repo

    def allocate_user_id(self) -> str:
        return next_user_display_id(self.user_repo.find_max_display_id())

    def allocate_recipe_id(self) -> int:
        return next_recipe_display_id(self.recipe_repo.find_max_display_id())

    def allocate_authored_recipe_id(self) -> int:
        return next_authored_recipe_display_id(self.recipe_repo.find_max_display_id())
