from fastapi import APIRouter, Depends, Request, status

from app.api.dependencies import get_auth_service, get_current_user
from app.core.limiter import AUTH_RATE_LIMIT, limiter
from app.core.response import ApiResponse, success_response
from app.models.dto import LoginRequest, RegisterRequest
from app.services.auth_service import AuthService

router = APIRouter(
    prefix="/api/auth",
    tags=["Auth"],
)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
@limiter.limit(AUTH_RATE_LIMIT)
def register(
    request: Request,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    회원가입

    - 이메일은 소문자로 저장
    - 표시용 ID(u001 ...)를 할당

    Returns:
        201 Created: {user: {_id, id, username, email}, token}
    """
    return success_response(data=service.register(body), message="User registered successfully")


@router.post("/login", response_model=ApiResponse)
@limiter.limit(AUTH_RATE_LIMIT)
def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    로그인

    Returns:
        200 OK: {user: {_id, id, username, email, favorites, createdRecipes}, token}
        401: 이메일 또는 비밀번호 불일치
    """
    return success_response(data=service.login(body), message="Login successful")


@router.get("/me", response_model=ApiResponse)
def me(
    claims: dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """토큰 사용자 프로필 (비밀번호 제외, 즐겨찾기/작성 레시피 요약 포함)"""
    return success_response(data=service.me(claims["userId"]), message="User fetched successfully")
