import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from app.core.security import hash_password
from app.exception.common.resource_exception import (
    DuplicateDisplayIdError,
    DuplicateEmailError,
    UserNotFoundError,
)
from app.models.dto import UserCreateRequest, UserUpdateRequest
from app.models.user import User
from app.repositories.base import IUserRepository
from app.services.identity_allocator import IdentityAllocator
from app.utils.query_params import ListQuery
from app.validate.reference_validator import require_user_ref
from app.validate.request_validator import (
    validate_registration,
    validate_user_display_id,
    validate_user_update,
)

logger = logging.getLogger(__name__)


def new_user_document(display_id: str, username: str, email: str, password: str) -> Dict[str, Any]:
    """신규 사용자 문서. 비밀번호는 해시하여 저장"""
    now = datetime.now(timezone.utc)
    return {
        "id": display_id,
        "username": username,
        "email": email,
        "password": hash_password(password),
        "favorites": [],
        "createdRecipes": [],
        "created_at": now,
        "updated_at": now,
    }


class UserService:
    """/users CRUD. 즐겨찾기 변경은 RelationshipManager 담당"""

    def __init__(self, user_repo: IUserRepository, allocator: IdentityAllocator):
        self.user_repo = user_repo
        self.allocator = allocator

    def list_users(self, query: ListQuery) -> List[User]:
        return self.user_repo.list(query)

    def count_users(self, where: Dict[str, Any]) -> int:
        return self.user_repo.count(where)

    def get_user(self, user_ref: Any) -> User:
        user = self.user_repo.get(require_user_ref(user_ref))
        if user is None:
            raise UserNotFoundError()
        return user

    def create_user(self, request: UserCreateRequest) -> User:
        """
        사용자 생성. id 미지정 시 표시 ID를 할당합니다.

        Raises:
            RequestValidationFailedError: 필수 필드 누락/형식 오류
            DuplicateDisplayIdError: 표시 ID 중복 (동시 생성 경합 포함)
            DuplicateEmailError: 이메일 중복
        """
        username, email, password = validate_registration(request.username, request.email, request.password)
        display_id = validate_user_display_id(request.id)

        if display_id is None:
            display_id = self.allocator.allocate_user_id()
        elif self.user_repo.count({"id": display_id}) > 0:
            raise DuplicateDisplayIdError("User ID already exists")

        if self.user_repo.find_by_email(email) is not None:
            raise DuplicateEmailError()

        user = self.user_repo.insert(new_user_document(display_id, username, email, password))
        logger.info(f"User created: {user.internal_id} ({display_id})")
        return user

    def update_user(self, user_ref: Any, request: UserUpdateRequest) -> User:
        user_id = require_user_ref(user_ref)
        username, email, password = validate_user_update(request.username, request.email, request.password)

        if self.user_repo.get(user_id) is None:
            raise UserNotFoundError()

        holder = self.user_repo.find_by_email(email)
        if holder is not None and holder.internal_id != user_id:
            raise DuplicateEmailError()

        fields: Dict[str, Any] = {"username": username, "email": email}
        if password:
            fields["password"] = hash_password(password)

        updated = self.user_repo.update_profile(user_id, fields)
        if updated is None:
            raise UserNotFoundError()
        return updated

    def delete_user(self, user_ref: Any) -> None:
        """사용자 삭제. 작성한 레시피나 다른 참조는 정리하지 않음"""
        user_id = require_user_ref(user_ref)
        if not self.user_repo.delete(user_id):
            raise UserNotFoundError()
        logger.info(f"User deleted: {user_id}")
