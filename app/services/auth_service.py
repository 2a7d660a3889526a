import logging
from typing import Any, Dict

from app.core.security import create_access_token, verify_password
from app.exception.common.auth_exception import InvalidCredentialsError
from app.exception.common.resource_exception import DuplicateEmailError, UserNotFoundError, UsernameTakenError
from app.models.dto import LoginRequest, RegisterRequest
from app.repositories.base import IRecipeRepository, IUserRepository
from app.services.identity_allocator import IdentityAllocator
from app.services.user_service import new_user_document
from app.validate.reference_validator import require_user_ref
from app.validate.request_validator import validate_login, validate_registration

logger = logging.getLogger(__name__)


class AuthService:
    """
    회원가입/로그인/내 정보 조회

    토큰 claims는 {userId, username}. userId는 사용자 내부 식별자입니다.
    """

    def __init__(self, user_repo: IUserRepository, recipe_repo: IRecipeRepository, allocator: IdentityAllocator):
        self.user_repo = user_repo
        self.recipe_repo = recipe_repo
        self.allocator = allocator

    def register(self, request: RegisterRequest) -> Dict[str, Any]:
        """
        Returns:
            Dict: {"user": {_id, id, username, email}, "token": str}

        Raises:
            RequestValidationFailedError, DuplicateEmailError, UsernameTakenError, DuplicateDisplayIdError
        """
        username, email, password = validate_registration(request.username, request.email, request.password)

        if self.user_repo.find_by_email(email) is not None:
            raise DuplicateEmailError("Email already registered")
        if self.user_repo.find_by_username(username) is not None:
            raise UsernameTakenError()

        display_id = self.allocator.allocate_user_id()
        user = self.user_repo.insert(new_user_document(display_id, username, email, password))
        logger.info(f"User registered: {user.internal_id} ({display_id})")

        return {
            "user": user.to_summary(),
            "token": create_access_token(user.internal_id, user.username),
        }

    def login(self, request: LoginRequest) -> Dict[str, Any]:
        email, password = validate_login(request.email, request.password)

        user = self.user_repo.find_by_email(email)
        # 계정 존재 여부를 노출하지 않도록 두 경우 모두 같은 메시지
        if user is None or not verify_password(password, user.password_digest):
            logger.warning("Login failed", extra={"email": email})
            raise InvalidCredentialsError()

        summary = user.to_summary()
        summary["favorites"] = [edge.model_dump() for edge in user.favorites]
        summary["createdRecipes"] = list(user.created_recipes)
        return {
            "user": summary,
            "token": create_access_token(user.internal_id, user.username),
        }

    def me(self, user_ref: Any) -> Dict[str, Any]:
        """
        호출자 프로필 (비밀번호 제외). favorites와 createdRecipes는 레시피 요약으로 채움.
        삭제된 레시피를 가리키는 즐겨찾기는 recipe가 null로 표시됩니다.
        """
        user = self.user_repo.get(require_user_ref(user_ref))
        if user is None:
            raise UserNotFoundError()

        referenced = {fav.recipe_id for fav in user.favorites} | set(user.created_recipes)
        recipes = {r.internal_id: r for r in self.recipe_repo.get_many(list(referenced))}

        profile = user.to_public()
        profile["favorites"] = [
            {
                **edge.model_dump(),
                "recipe": recipes[edge.recipe_id].to_reference() if edge.recipe_id in recipes else None,
            }
            for edge in user.favorites
        ]
        profile["createdRecipes"] = [
            recipes[rid].to_reference() for rid in user.created_recipes if rid in recipes
        ]
        return profile
