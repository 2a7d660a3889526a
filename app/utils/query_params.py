"""
목록 조회 쿼리 파라미터 파싱

/users, /recipes 목록 API는 JSON 문자열 쿼리 파라미터를 받습니다.
    where  : 필터 조건 (예: {"title": "Tomato Soup"})
    sort   : 정렬 (예: {"id": -1})
    select : 응답 필드 선택 (예: {"title": 1} 또는 {"ingredients": 0})
    skip   : 건너뛸 개수
    limit  : 최대 개수
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from app.exception.common.request_exception import RequestValidationFailedError

# 클라이언트 필터에 허용하지 않는 필드 (비밀번호 digest로 검색/정렬 금지)
HIDDEN_FIELDS = frozenset({"password"})

# 서버 측 JS/표현식 실행 연산자는 필터에 허용하지 않음
FORBIDDEN_OPERATORS = frozenset({"$where", "$expr", "$function", "$accumulator"})


@dataclass
class ListQuery:
    where: Dict[str, Any] = field(default_factory=dict)
    sort: List[Tuple[str, int]] = field(default_factory=list)
    select: Optional[Dict[str, int]] = None
    skip: int = 0
    limit: Optional[int] = None


def _parse_json_object(raw: Optional[str], name: str) -> Optional[Dict[str, Any]]:
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise RequestValidationFailedError(f"Invalid JSON in '{name}' parameter")
    if not isinstance(value, dict):
        raise RequestValidationFailedError(f"'{name}' parameter must be a JSON object")
    return value


def _reject_hidden(keys, name: str):
    for key in keys:
        if key.split(".")[0] in HIDDEN_FIELDS:
            raise RequestValidationFailedError(f"Field '{key}' cannot be used in '{name}'")


def _check_filter(node: Any, name: str):
    """
    필터를 재귀적으로 검사합니다. $or/$and/$nor/$not/$elemMatch 안쪽의 필드도 포함.

    Raises:
        RequestValidationFailedError: 숨김 필드 사용 또는 금지 연산자 사용
    """
    if isinstance(node, list):
        for item in node:
            _check_filter(item, name)
        return
    if not isinstance(node, dict):
        return
    for key, value in node.items():
        if key in FORBIDDEN_OPERATORS:
            raise RequestValidationFailedError(f"Operator '{key}' cannot be used in '{name}'")
        if not key.startswith("$"):
            _reject_hidden([key], name)
        _check_filter(value, name)


def parse_list_query(
    where: Optional[str] = None,
    sort: Optional[str] = None,
    select: Optional[str] = None,
    skip: Optional[int] = None,
    limit: Optional[int] = None,
) -> ListQuery:
    where_obj = _parse_json_object(where, "where") or {}
    sort_obj = _parse_json_object(sort, "sort") or {}
    select_obj = _parse_json_object(select, "select")

    _check_filter(where_obj, "where")
    _reject_hidden(sort_obj.keys(), "sort")

    sort_spec = []
    for key, direction in sort_obj.items():
        if direction not in (1, -1):
            raise RequestValidationFailedError("Sort direction must be 1 or -1")
        sort_spec.append((key, direction))

    if select_obj is not None:
        flags = set(select_obj.values())
        if not flags <= {0, 1}:
            raise RequestValidationFailedError("Select values must be 0 or 1")

    if skip is not None and skip < 0:
        raise RequestValidationFailedError("'skip' must be >= 0")
    if limit is not None and limit < 0:
        raise RequestValidationFailedError("'limit' must be >= 0")

    return ListQuery(
        where=where_obj,
        sort=sort_spec,
        select=select_obj,
        skip=skip or 0,
        limit=limit or None,
    )


def apply_select(item: Dict[str, Any], select: Optional[Dict[str, int]]) -> Dict[str, Any]:
    """
    직렬화된 문서에 select 프로젝션 적용. 키 순서는 원본 순서를 유지합니다.
    포함 모드({"title": 1})에서는 _id가 항상 포함됩니다 ({"_id": 0}으로 제외 가능).
    """
    if not select:
        return item

    include = {key for key, flag in select.items() if flag == 1}
    exclude = {key for key, flag in select.items() if flag == 0}

    if include:
        keep_id = "_id" not in exclude
        return {
            key: value for key, value in item.items()
            if key in include or (key == "_id" and keep_id)
        }
    return {key: value for key, value in item.items() if key not in exclude}
