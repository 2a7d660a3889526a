"""
Rate Limiter 모듈
순환 임포트를 피하기 위해 limiter를 중앙 집중화
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import RATE_LIMIT_PER_MINUTE

# 사용자의 IP 주소를 기준으로 제한
limiter = Limiter(key_func=get_remote_address)

# 로그인/회원가입 (비밀번호 대입 방지)
AUTH_RATE_LIMIT = f"{RATE_LIMIT_PER_MINUTE}/minute"
