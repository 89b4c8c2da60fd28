from typing import Optional

from heritage_crafts.core.errors import InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.enums import UserRole
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.users import UserRepository
from heritage_crafts.db.repositories.refresh_tokens import RefreshTokenRepository
from heritage_crafts.security.permissions import require_role
from heritage_crafts.utils.multilingual import is_supported_language
from heritage_crafts.features.users.schemas import (
    AdminUserUpdateIn,
    UserListOut,
    UserOut,
    UserProfileUpdateIn,
)

logger = get_logger(__name__)


class UserService:
    def __init__(self, repo: UserRepository, refresh_repo: Optional[RefreshTokenRepository] = None):
        self.repo = repo
        self.refresh_repo = refresh_repo

    def get(self, user_id: int) -> User:
        user = self.repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    # ---------- Profil courant ----------
    def update_profile(self, user: User, payload: UserProfileUpdateIn) -> User:
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            return user
        return self.repo.update(user, **changes)

    def update_language(self, user: User, language: str) -> User:
        if not is_supported_language(language):
            raise InvalidOperationError(f"Unsupported language: {language}")
        return self.repo.update(user, preferred_language=language)

    # ---------- Admin ----------
    def list_users(
        self,
        actor: User,
        *,
        role: Optional[UserRole] = None,
        q: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> UserListOut:
        require_role(actor, UserRole.ADMIN)
        items = self.repo.search(role=role, q=q, offset=offset, limit=limit)
        total = self.repo.count_filtered(role=role, q=q)
        return UserListOut(items=[UserOut.model_validate(u) for u in items], total=total)

    def admin_update(self, actor: User, user_id: int, payload: AdminUserUpdateIn) -> User:
        require_role(actor, UserRole.ADMIN)
        target = self.get(user_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if target.id == actor.id and (
            changes.get("role", UserRole.ADMIN) != UserRole.ADMIN or changes.get("is_active") is False
        ):
            raise InvalidOperationError("Admins cannot demote or disable themselves")
        if not changes:
            return target
        updated = self.repo.update(target, **changes)
        if changes.get("is_active") is False and self.refresh_repo is not None:
            self.refresh_repo.revoke_all_for_user(updated.id)
        logger.info("Admin %s updated user %s: %s", actor.id, user_id, changes)
        return updated

    def admin_delete(self, actor: User, user_id: int) -> None:
        require_role(actor, UserRole.ADMIN)
        if actor.id == user_id:
            raise InvalidOperationError("Admins cannot delete their own account")
        target = self.get(user_id)
        # désactivation logique : conserve l'historique des commandes et réservations
        self.repo.update(target, is_active=False)
        if self.refresh_repo is not None:
            self.refresh_repo.revoke_all_for_user(target.id)
        logger.info("Admin %s deactivated user %s", actor.id, user_id)
