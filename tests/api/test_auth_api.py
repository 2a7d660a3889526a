from app.core.security import create_access_token


def _contains_key(value, key):
    if isinstance(value, dict):
        return key in value or any(_contains_key(v, key) for v in value.values())
    if isinstance(value, list):
        return any(_contains_key(v, key) for v in value)
    return False


def test_register_login_me_flow(client, register, auth_headers):
    """회원가입 → 로그인 → 내 정보 조회. 어느 응답에도 password가 없어야 한다."""
    user, token = register()

    assert list(user) == ["_id", "id", "username", "email"]
    assert user["id"] == "u001"
    assert user["email"] == "a@x.com"

    login = client.post("/api/auth/login", json={"email": "A@X.com", "password": "secret1"})
    assert login.status_code == 200
    login_data = login.json()["data"]
    assert login_data["user"]["_id"] == user["_id"]
    assert login_data["user"]["favorites"] == []
    assert login_data["user"]["createdRecipes"] == []
    assert login_data["token"]

    me = client.get("/api/auth/me", headers=auth_headers(login_data["token"]))
    assert me.status_code == 200
    profile = me.json()["data"]
    assert profile["username"] == "alice"
    assert profile["favorites"] == []

    for body in (login.json(), me.json()):
        assert not _contains_key(body, "password")


def test_register_assigns_sequential_ids(register):
    first, _ = register()
    second, _ = register(username="bob", email="b@x.com")
    assert (first["id"], second["id"]) == ("u001", "u002")


def test_register_duplicate_email(client, register):
    register()
    response = client.post(
        "/api/auth/register", json={"username": "other", "email": "A@x.com", "password": "secret1"}
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Email already registered"


def test_register_duplicate_username(client, register):
    register()
    response = client.post(
        "/api/auth/register", json={"username": "alice", "email": "other@x.com", "password": "secret1"}
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Username already taken"


def test_register_missing_fields(client):
    response = client.post("/api/auth/register", json={"username": "alice"})

    assert response.status_code == 400
    assert response.json()["message"] == "Username, email, and password are required"


def test_login_wrong_password(client, register):
    register()
    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong-pw"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_login_unknown_email(client):
    response = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "secret1"})
    assert response.status_code == 401


def test_me_requires_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["message"] == "No token provided"


def test_me_invalid_token(client, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers("garbage"))

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_me_expired_token(client, register, auth_headers):
    user, _ = register()
    expired = create_access_token(user["_id"], user["username"], expires_days=-1)

    response = client.get("/api/auth/me", headers=auth_headers(expired))

    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"


def test_me_deleted_user(client, register, auth_headers):
    user, token = register()
    client.delete(f"/api/users/{user['_id']}")

    response = client.get("/api/auth/me", headers=auth_headers(token))

    assert response.status_code == 404


def test_me_resolves_recipe_summaries(client, register, auth_headers, make_recipe):
    user, token = register()
    kept = make_recipe(title="Soup")
    gone = make_recipe(title="Stew")
    client.post(f"/api/favorites/{kept.internal_id}", headers=auth_headers(token))
    client.post(f"/api/favorites/{gone.internal_id}", headers=auth_headers(token))
    client.delete(f"/api/recipes/{gone.internal_id}")

    profile = client.get("/api/auth/me", headers=auth_headers(token)).json()["data"]

    assert profile["favorites"][0]["recipe"] == {
        "_id": kept.internal_id, "id": kept.display_id, "title": "Soup", "imageName": "",
    }
    assert profile["favorites"][1]["recipe"] is None
