from datetime import datetime, timezone

from app.core.error_codes import ErrorCode
from app.core.response import ApiResponse, error_response, success_response


def test_success_response_basic():
    """기본 성공 응답 생성 테스트"""
    response = success_response(data={"count": 3})

    assert response.success is True
    assert response.code == ErrorCode.COMMON_SUCCESS
    assert response.message == "OK"
    assert response.data == {"count": 3}


def test_success_response_collection_stays_list():
    """컬렉션 응답은 비어 있어도 리스트"""
    assert success_response(data=[]).model_dump()["data"] == []


def test_success_response_custom_message():
    assert success_response(message="Recipe created").message == "Recipe created"


def test_error_response():
    response = error_response(message="Recipe not found", code=ErrorCode.RECIPE_NOT_FOUND)

    assert response.model_dump() == {
        "success": False,
        "code": "RECIPE-404",
        "message": "Recipe not found",
        "data": None,
    }


def test_error_response_default_code():
    assert error_response(message="boom").code == ErrorCode.INTERNAL_ERROR


def test_json_serialization_of_datetimes():
    saved_at = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    body = ApiResponse.ok(data={"saved_at": saved_at}).model_dump(mode="json")

    assert body["data"]["saved_at"] == "2026-01-02T03:04:05Z"


def test_http_error_code():
    assert ErrorCode.http_error(404) == "HTTP_404"
