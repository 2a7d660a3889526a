import io
from types import SimpleNamespace

import pytest

from app.api import images as images_api
from app.api.dependencies import get_image_store
from app.core.config import UPLOAD_TOKEN
from app.exception.common.request_exception import RequestValidationFailedError
from app.main import app
from app.repositories.memory import InMemoryImageStore

JPEG = b"\xff\xd8\xff\xe0" + b"0" * 32
PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 32


@pytest.fixture
def upload_headers(auth_headers):
    return auth_headers(UPLOAD_TOKEN)


def test_upload_and_fetch(client, upload_headers):
    response = client.post(
        "/api/gridfs-images/upload",
        files={"image": ("tomato_soup.jpg", JPEG, "image/jpeg")},
        headers=upload_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["filename"] == "tomato_soup.jpg"
    assert data["size"] == len(JPEG)
    assert data["imageUrl"] == "/api/gridfs-images/tomato_soup"
    assert data["fullUrl"].endswith("/api/gridfs-images/tomato_soup")

    image = client.get("/api/gridfs-images/tomato_soup.jpg")
    assert image.status_code == 200
    assert image.content == JPEG
    assert image.headers["content-type"] == "image/jpeg"
    assert image.headers["cache-control"] == "public, max-age=31536000"


def test_fetch_without_extension_falls_back_to_jpg(client, image_store):
    image_store.save("kimchi.jpg", "image/jpeg", JPEG)

    response = client.get("/api/gridfs-images/kimchi")

    assert response.status_code == 200
    assert response.content == JPEG


def test_fetch_missing(client):
    response = client.get("/api/gridfs-images/nothing")

    assert response.status_code == 404
    assert response.json()["message"] == "Image not found"
    assert response.json()["data"] == {"filename": "nothing"}


def test_upload_replaces_same_name(client, upload_headers, image_store):
    for payload, content_type in ((JPEG, "image/jpeg"), (PNG, "image/png")):
        client.post(
            "/api/gridfs-images/upload",
            files={"image": ("dish.png", payload, content_type)},
            headers=upload_headers,
        )

    assert image_store.find("dish.png").data == PNG
    assert len(client.get("/api/gridfs-images").json()["data"]) == 1


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}])
def test_upload_requires_upload_token(client, headers):
    response = client.post(
        "/api/gridfs-images/upload",
        files={"image": ("a.jpg", JPEG, "image/jpeg")},
        headers=headers,
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or missing authorization token"


def test_upload_rejects_non_image(client, upload_headers):
    response = client.post(
        "/api/gridfs-images/upload",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=upload_headers,
    )

    assert response.status_code == 400


def test_upload_without_file(client, upload_headers):
    response = client.post("/api/gridfs-images/upload", headers=upload_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "No file uploaded"


def test_batch_upload(client, upload_headers):
    response = client.post(
        "/api/gridfs-images/batch-upload",
        files=[
            ("images", ("a.jpg", JPEG, "image/jpeg")),
            ("images", ("b.png", PNG, "image/png")),
        ],
        headers=upload_headers,
    )

    assert response.status_code == 200
    assert [item["filename"] for item in response.json()["data"]] == ["a.jpg", "b.png"]


def test_batch_upload_is_all_or_nothing(client, upload_headers, image_store):
    response = client.post(
        "/api/gridfs-images/batch-upload",
        files=[
            ("images", ("a.jpg", JPEG, "image/jpeg")),
            ("images", ("bad.txt", b"text", "text/plain")),
        ],
        headers=upload_headers,
    )

    assert response.status_code == 400
    assert image_store.list(10) == []


@pytest.fixture
def small_limit(monkeypatch):
    monkeypatch.setattr("app.api.images.IMAGE_MAX_BYTES", 8)
    monkeypatch.setattr("app.validate.image_validator.IMAGE_MAX_BYTES", 8)
    return 8


def test_read_stops_after_size_limit(small_limit):
    source = io.BytesIO(b"0" * 100)
    upload = SimpleNamespace(filename="big.jpg", content_type="image/jpeg", size=None, file=source)

    _, _, data = images_api._read(upload)

    assert len(data) == small_limit + 1
    assert source.tell() == small_limit + 1


def test_read_rejects_declared_size_before_reading(small_limit):
    source = io.BytesIO(JPEG)
    upload = SimpleNamespace(filename="big.jpg", content_type="image/jpeg", size=len(JPEG), file=source)

    with pytest.raises(RequestValidationFailedError, match="File too large"):
        images_api._read(upload)
    assert source.tell() == 0


def test_upload_too_large(client, upload_headers, image_store, small_limit):
    response = client.post(
        "/api/gridfs-images/upload",
        files={"image": ("big.jpg", JPEG, "image/jpeg")},
        headers=upload_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("File too large")
    assert image_store.list(10) == []


def test_batch_upload_too_large_saves_nothing(client, upload_headers, image_store, small_limit):
    response = client.post(
        "/api/gridfs-images/batch-upload",
        files=[
            ("images", ("ok.jpg", b"\xff\xd8\xff\xe0", "image/jpeg")),
            ("images", ("big.jpg", JPEG, "image/jpeg")),
        ],
        headers=upload_headers,
    )

    assert response.status_code == 400
    assert image_store.list(10) == []


def test_list_images_limit(client, image_store):
    for name in ("a.jpg", "b.jpg", "c.jpg"):
        image_store.save(name, "image/jpeg", JPEG)

    data = client.get("/api/gridfs-images", params={"limit": 2}).json()["data"]

    assert len(data) == 2
    assert "data" not in data[0]


class _NotReadyStore(InMemoryImageStore):
    def is_ready(self) -> bool:
        return False


def test_health_ready(client):
    response = client.get("/api/health/ready")
    assert response.status_code == 200
    assert response.json()["data"] == {"ready": True}


def test_health_not_ready(client):
    app.dependency_overrides[get_image_store] = lambda: _NotReadyStore()

    response = client.get("/api/health/ready")

    assert response.status_code == 503
    assert response.json()["code"] == "STORE-002"
