from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.auth import router as auth_router
from app.api.favorites import router as favorites_router
from app.api.health import router as health_router
from app.api.images import router as images_router
from app.api.recipes import router as recipes_router
from app.api.user_recipes import router as user_recipes_router
from app.api.users import router as users_router
from app.core.config import ALLOWED_ORIGINS, LOG_DIR
from app.core.limiter import limiter
from app.core.logging_config import setup_logging
from app.core.middleware import CacheControlMiddleware, RealIPMiddleware, TraceIDMiddleware
from app.exception.api.store_exception import StoreUnavailableError
from app.exception.base_exception import BaseCustomException
from app.exception.envelope_handlers import (
    custom_exception_handler,
    global_exception_handler_envelope,
    http_exception_handler,
    rate_limit_exception_handler,
    store_exception_handler,
    validation_exception_handler,
)

# 로깅 설정(콘솔 + LOG_DIR 지정 시 일자별 파일 로테이션, JSON 포맷)
setup_logging(LOG_DIR)

app = FastAPI(title="Recipe Catalog API")
app.state.limiter = limiter


@app.get("/ping")
def ping():
    return {"ok": True}


# 미들웨어는 나중에 추가한 것이 바깥쪽에서 실행됨 (TraceID가 가장 먼저)
app.add_middleware(CacheControlMiddleware)
app.add_middleware(RealIPMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TraceIDMiddleware)

# API 라우터 포함
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(recipes_router)
app.include_router(user_recipes_router)
app.include_router(favorites_router)
app.include_router(images_router)

# 예외 핸들러 (모든 오류를 {success, code, message, data} 형식으로 변환)
app.add_exception_handler(StoreUnavailableError, store_exception_handler)
app.add_exception_handler(BaseCustomException, custom_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, global_exception_handler_envelope)
