"""
비밀번호 해시와 액세스 토큰 발급/검증

- 비밀번호: bcrypt (salt 포함 digest 저장)
- 토큰: PyJWT HS256, claims = {userId, username, exp}
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from app.core.config import JWT_ALGORITHM, JWT_EXPIRES_DAYS, JWT_SECRET, USING_DEFAULT_JWT_SECRET, IS_DEBUG
from app.exception.common.auth_exception import TokenExpiredError, TokenInvalidError

logger = logging.getLogger(__name__)

if USING_DEFAULT_JWT_SECRET and not IS_DEBUG:
    logger.warning("JWT_SECRET is not set. Using the default development secret.")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, digest: str) -> bool:
    """digest가 비어 있거나 bcrypt 형식이 아니면 False"""
    if not digest:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), digest.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password digest is not a valid bcrypt hash")
        return False


def create_access_token(user_id: str, username: str, expires_days: int = JWT_EXPIRES_DAYS) -> str:
    """
    액세스 토큰 발급

    Args:
        user_id (str): 사용자 내부 식별자
        username (str): 사용자 이름
        expires_days (int): 유효 기간 (일)

    Returns:
        str: 서명된 JWT
    """
    expires_at = datetime.now(timezone.utc) + timedelta(days=expires_days)
    claims = {"userId": user_id, "username": username, "exp": expires_at}
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    토큰 검증 후 claims 반환

    Raises:
        TokenExpiredError: 만료된 토큰
        TokenInvalidError: 서명 불일치, 형식 오류, userId 누락
    """
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError:
        raise TokenInvalidError()

    if not isinstance(claims.get("userId"), str):
        raise TokenInvalidError()
    return claims
