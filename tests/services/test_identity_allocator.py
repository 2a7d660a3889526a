import pytest
from unittest.mock import MagicMock

from app.exception.api.store_exception import StoreUnavailableError
from app.exception.common.resource_exception import DuplicateDisplayIdError
from app.services.identity_allocator import (
    IdentityAllocator,
    next_authored_recipe_display_id,
    next_recipe_display_id,
    next_user_display_id,
)


@pytest.mark.parametrize("current_max, expected", [
    (None, "u001"),
    ("u001", "u002"),
    ("u042", "u043"),
    ("u099", "u100"),
    ("u999", "u1000"),
    ("u1000", "u1001"),
    ("xyz", "u001"),        # 형식 불일치 레거시 값
    ("u", "u001"),
    ("u12a", "u001"),
])
def test_next_user_display_id(current_max, expected):
    assert next_user_display_id(current_max) == expected


@pytest.mark.parametrize("current_max, expected", [
    (None, 0),
    (0, 1),
    (41, 42),
])
def test_next_recipe_display_id(current_max, expected):
    assert next_recipe_display_id(current_max) == expected


@pytest.mark.parametrize("current_max, expected", [
    (None, 10000),
    (4999, 10000),
    (9999, 10000),
    (10000, 10001),
    (10005, 10006),     # 실제 최댓값이 floor보다 크면 최댓값 + 1
])
def test_next_authored_recipe_display_id(current_max, expected):
    assert next_authored_recipe_display_id(current_max) == expected


def test_allocator_reads_numeric_max_not_lexicographic(allocator, make_user):
    """u999 와 u1000 이 섞여 있어도 숫자 기준 최댓값 다음 값을 발급"""
    make_user(display_id="u999")
    make_user(display_id="u1000")
    make_user(display_id="u998")

    assert allocator.allocate_user_id() == "u1001"


def test_allocator_first_ids(allocator):
    assert allocator.allocate_user_id() == "u001"
    assert allocator.allocate_recipe_id() == 0
    assert allocator.allocate_authored_recipe_id() == 10000


def test_allocator_authored_uses_true_max(allocator, make_recipe):
    make_recipe(display_id=4999)
    assert allocator.allocate_authored_recipe_id() == 10000

    make_recipe(display_id=10005)
    assert allocator.allocate_authored_recipe_id() == 10006
    assert allocator.allocate_recipe_id() == 10006


def test_allocator_propagates_store_failure():
    """최댓값 조회 실패 시 추측한 ID로 진행하지 않고 실패"""
    user_repo = MagicMock()
    user_repo.find_max_display_id.side_effect = StoreUnavailableError(detail="connection refused")
    allocator = IdentityAllocator(user_repo, MagicMock())

    with pytest.raises(StoreUnavailableError):
        allocator.allocate_user_id()


def test_concurrent_allocation_loser_gets_conflict(allocator, user_repo):
    """같은 ID를 계산한 두 번째 저장은 유니크 제약으로 409"""
    first = allocator.allocate_user_id()
    second = allocator.allocate_user_id()
    assert first == second == "u001"

    user_repo.insert({"id": first, "username": "a", "email": "a@example.com"})
    with pytest.raises(DuplicateDisplayIdError):
        user_repo.insert({"id": second, "username": "b", "email": "b@example.com"})
