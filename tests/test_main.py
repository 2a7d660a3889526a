from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_ping():
    response = client.get("/ping")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_routes_registered():
    paths = {getattr(route, "path", None) for route in app.routes}

    for path in (
        "/api/auth/register",
        "/api/auth/login",
        "/api/auth/me",
        "/api/users",
        "/api/users/{user_id}/favorites/{recipe_ref}",
        "/api/recipes/count",
        "/api/user-recipes/{recipe_id}",
        "/api/favorites/check/{recipe_id}",
        "/api/gridfs-images/batch-upload",
        "/api/health/ready",
    ):
        assert path in paths


def test_cors_allows_local_frontend():
    response = client.options(
        "/api/recipes",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )
    assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"
