import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_image_store, get_recipe_repository, get_user_repository
from app.core.limiter import limiter
from app.main import app
from app.repositories.memory import InMemoryImageStore, InMemoryRecipeRepository, InMemoryUserRepository
from app.services.identity_allocator import IdentityAllocator
from app.services.relationship_manager import RelationshipManager


@pytest.fixture(autouse=True)
def reset_limiter():
    """각 테스트 전에 limiter storage를 리셋"""
    limiter.reset()
    yield


@pytest.fixture
def user_repo():
    """각 테스트마다 독립적인 In-Memory 저장소"""
    return InMemoryUserRepository()


@pytest.fixture
def recipe_repo():
    return InMemoryRecipeRepository()


@pytest.fixture
def image_store():
    return InMemoryImageStore()


@pytest.fixture
def allocator(user_repo, recipe_repo):
    return IdentityAllocator(user_repo, recipe_repo)


@pytest.fixture
def relationships(user_repo, recipe_repo):
    return RelationshipManager(user_repo, recipe_repo)


@pytest.fixture
def client(user_repo, recipe_repo, image_store):
    """Dependency override가 적용된 TestClient 제공 및 자동 정리"""
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_recipe_repository] = lambda: recipe_repo
    app.dependency_overrides[get_image_store] = lambda: image_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(user_repo):
    """저장소에 직접 사용자 문서 생성 (비밀번호 해시 없이)"""
    counter = {"n": 0}

    def _make(username=None, email=None, display_id=None):
        counter["n"] += 1
        n = counter["n"]
        return user_repo.insert({
            "id": display_id or f"u{n:03d}",
            "username": username or f"user{n}",
            "email": email or f"user{n}@example.com",
            "password": "",
            "favorites": [],
            "createdRecipes": [],
        })

    return _make


@pytest.fixture
def make_recipe(recipe_repo):
    counter = {"n": 0}

    def _make(title=None, display_id=None, **extra):
        counter["n"] += 1
        document = {
            "id": counter["n"] if display_id is None else display_id,
            "title": title or f"Recipe {counter['n']}",
            "ingredients": ["salt"],
            "instructions": "Mix.",
            "imageName": "",
            "extractedIngredients": [],
        }
        document.update(extra)
        return recipe_repo.insert(document)

    return _make


@pytest.fixture
def register(client):
    """회원가입 후 (user, token) 반환"""

    def _register(username="alice", email="a@x.com", password="secret1"):
        response = client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], data["token"]

    return _register


@pytest.fixture
def auth_headers():
    def _headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _headers
