"""
미들웨어 통합 테스트 모듈

httpx.AsyncClient + ASGITransport로 실제 FastAPI 앱에 요청을 보내
미들웨어 체인 전체(TraceID, CacheControl, RealIP)의 동작을 검증합니다.
"""

import logging
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_image_store
from app.main import app
from app.repositories.memory import InMemoryImageStore


# =============================================================================
# Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def client():
    """미들웨어 통합 테스트용 AsyncClient Fixture"""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def stored_image():
    store = InMemoryImageStore()
    store.save("soup.jpg", "image/jpeg", b"\xff\xd8\xff")
    app.dependency_overrides[get_image_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


def _access_logs(caplog):
    return [r for r in caplog.records if r.name == "app.core.middleware" and hasattr(r, "real_ip")]


# =============================================================================
# TraceIDMiddleware 테스트
# =============================================================================

class TestTraceIDMiddleware:

    @pytest.mark.asyncio
    async def test_trace_id_auto_generated(self, client):
        """Trace ID 미전송 시 UUIDv4가 자동 생성되어 응답 헤더에 포함되는지 검증"""
        response = await client.get("/ping")

        trace_id = response.headers.get("X-Trace-ID")
        assert trace_id is not None

        parsed = uuid.UUID(trace_id, version=4)
        assert str(parsed) == trace_id

    @pytest.mark.asyncio
    async def test_trace_id_passthrough(self, client):
        """클라이언트가 보낸 X-Trace-ID가 그대로 응답에 반환되는지 검증"""
        custom_trace_id = "custom-trace-12345-abcde"
        response = await client.get("/ping", headers={"X-Trace-ID": custom_trace_id})

        assert response.headers.get("X-Trace-ID") == custom_trace_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_trace_id", ["has space", "semi;colon", "x" * 65])
    async def test_invalid_trace_id_replaced(self, client, bad_trace_id):
        """형식이 잘못된 Trace ID는 버리고 새로 발급"""
        response = await client.get("/ping", headers={"X-Trace-ID": bad_trace_id})

        trace_id = response.headers.get("X-Trace-ID")
        assert trace_id != bad_trace_id
        uuid.UUID(trace_id, version=4)


# =============================================================================
# CacheControlMiddleware 테스트
# =============================================================================

class TestCacheControlMiddleware:

    @pytest.mark.asyncio
    async def test_cache_control_on_api_path(self, client):
        """/api 경로 응답에 캐시 방지 헤더 추가 (404여도 동작)"""
        response = await client.get("/api/does-not-exist")

        assert response.status_code == 404
        cache_control = response.headers.get("Cache-Control")
        assert "no-store" in cache_control
        assert "no-cache" in cache_control
        assert response.headers.get("Pragma") == "no-cache"
        assert response.headers.get("Expires") == "0"

    @pytest.mark.asyncio
    async def test_cache_control_not_on_non_api(self, client):
        response = await client.get("/ping")

        cache_control = response.headers.get("Cache-Control")
        if cache_control:
            assert "no-store" not in cache_control

    @pytest.mark.asyncio
    async def test_image_cache_header_preserved(self, client, stored_image):
        """이미지 응답이 직접 지정한 Cache-Control은 덮어쓰지 않음"""
        response = await client.get("/api/gridfs-images/soup.jpg")

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "public, max-age=31536000"
        assert "Pragma" not in response.headers


# =============================================================================
# RealIPMiddleware 테스트
# =============================================================================

class TestRealIPMiddleware:

    @pytest.mark.asyncio
    async def test_real_ip_priority(self, client, caplog):
        """CF-Connecting-IP > X-Forwarded-For > X-Real-IP 순서"""
        with caplog.at_level(logging.INFO, logger="app.core.middleware"):
            await client.get(
                "/api/does-not-exist",
                headers={
                    "CF-Connecting-IP": "1.2.3.4",
                    "X-Forwarded-For": "5.6.7.8, 9.10.11.12",
                    "X-Real-IP": "13.14.15.16",
                },
            )

        records = _access_logs(caplog)
        assert records[-1].real_ip == "1.2.3.4"

    @pytest.mark.asyncio
    async def test_real_ip_x_forwarded_for(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="app.core.middleware"):
            await client.get(
                "/api/does-not-exist",
                headers={"X-Forwarded-For": "100.200.1.1, 10.0.0.1, 172.16.0.1"},
            )

        assert _access_logs(caplog)[-1].real_ip == "100.200.1.1"

    @pytest.mark.asyncio
    async def test_access_log_fields(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="app.core.middleware"):
            await client.get("/api/does-not-exist", headers={"X-Real-IP": "13.14.15.16"})

        record = _access_logs(caplog)[-1]
        assert record.real_ip == "13.14.15.16"
        assert record.method == "GET"
        assert record.path == "/api/does-not-exist"
        assert record.status == 404
        assert record.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_real_ip_ping_no_log(self, client, caplog):
        """/ping 요청은 접근 로그를 남기지 않음"""
        with caplog.at_level(logging.INFO, logger="app.core.middleware"):
            response = await client.get("/ping")

        assert response.status_code == 200
        assert [r for r in _access_logs(caplog) if r.path == "/ping"] == []


# =============================================================================
# 미들웨어 체인 E2E 테스트
# =============================================================================

@pytest.mark.asyncio
async def test_middleware_chain_all_headers(client):
    """TraceID, CacheControl 헤더가 함께 설정되는지 검증"""
    custom_trace = "e2e-test-trace-001"
    response = await client.get(
        "/api/does-not-exist",
        headers={"X-Trace-ID": custom_trace, "CF-Connecting-IP": "203.0.113.50"},
    )

    assert response.headers.get("X-Trace-ID") == custom_trace
    assert "no-store" in response.headers.get("Cache-Control", "")
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "HTTP_404"
