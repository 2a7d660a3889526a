# =============================================================================
# 요청 공통 미들웨어
# =============================================================================
# - Trace ID: 요청별 추적 ID 발급/전파
# - Cache-Control: API 응답 캐시 방지 (이미지처럼 직접 지정한 응답은 유지)
# - Real IP: 프록시 뒤 실제 클라이언트 IP 추출 및 접근 로그
# =============================================================================

import logging
import re
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.core.context import set_caller, set_trace_id

logger = logging.getLogger(__name__)

TRACE_ID_HEADER = "X-Trace-ID"
# 외부 추적 시스템 ID(UUID, 짧은 hex 등)를 허용하되 헤더/로그 주입은 막음
TRACE_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,64}$")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


class TraceIDMiddleware(BaseHTTPMiddleware):
    """
    HTTP 요청 추적을 위한 Trace ID 관리 미들웨어

    - 요청 헤더(X-Trace-ID)가 올바른 형식이면 그대로 사용
    - 없거나 형식이 잘못되면 UUIDv4 발급
    - 응답 헤더(X-Trace-ID)로 반환
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        trace_id = request.headers.get(TRACE_ID_HEADER)

        if trace_id and not TRACE_ID_PATTERN.match(trace_id):
            logger.warning("Invalid Trace ID received, issuing a new one")
            trace_id = None

        if not trace_id:
            trace_id = str(uuid.uuid4())

        set_trace_id(trace_id)
        # 인증 의존성이 요청마다 다시 설정
        set_caller(None)
        request.state.trace_id = trace_id

        response = await call_next(request)
        response.headers[TRACE_ID_HEADER] = trace_id
        return response


class CacheControlMiddleware(BaseHTTPMiddleware):
    """/api 응답에 캐시 방지 헤더 추가. 핸들러가 Cache-Control을 지정했으면 건드리지 않음"""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.url.path.startswith("/api") and "cache-control" not in response.headers:
            for name, value in NO_CACHE_HEADERS.items():
                response.headers[name] = value

        return response


class RealIPMiddleware(BaseHTTPMiddleware):
    """
    프록시 뒤에서 실제 클라이언트 IP를 추출하여 접근 로그를 남깁니다.

    IP 추출 우선순위:
    1. CF-Connecting-IP
    2. X-Forwarded-For의 첫 번째 IP
    3. X-Real-IP
    4. request.client.host (폴백)
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        real_ip = self._get_real_ip(request)
        request.state.real_ip = real_ip

        started = time.perf_counter()
        response = await call_next(request)

        if request.url.path != "/ping":
            logger.info(
                f"[{real_ip}] {request.method} {request.url.path} {response.status_code}",
                extra={
                    "real_ip": real_ip,
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                    "user_agent": request.headers.get("User-Agent", ""),
                },
            )
        return response

    def _get_real_ip(self, request: Request) -> str:
        cf_connecting_ip = request.headers.get("CF-Connecting-IP")
        if cf_connecting_ip:
            return cf_connecting_ip.strip()

        x_forwarded_for = request.headers.get("X-Forwarded-For")
        if x_forwarded_for:
            return x_forwarded_for.split(",")[0].strip()

        x_real_ip = request.headers.get("X-Real-IP")
        if x_real_ip:
            return x_real_ip.strip()

        if request.client:
            return request.client.host

        return "unknown"
