from datetime import datetime
from typing import Callable, Optional

from jose import JWTError

from heritage_crafts.core.errors import ConflictError, InvalidOperationError, NotFoundError, UnauthorizedError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.enums import UserRole
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.users import UserRepository
from heritage_crafts.db.repositories.refresh_tokens import RefreshTokenRepository
from heritage_crafts.security.password import hash_password, password_strength_errors, verify_password
from heritage_crafts.security.tokens import ACCESS, REFRESH, JWTSettings, WrongTokenType, decode_token, issue_token_pair
from heritage_crafts.utils.multilingual import is_supported_language
from heritage_crafts.features.authentication.schemas import (
    RegisterIn,
    LoginIn,
    TokenPairOut,
    RefreshIn,
    LogoutIn,
    ChangePasswordIn,
)

logger = get_logger(__name__)


class AuthService:
    """
    Service d'authentification : orchestre les repositories + tokens.
    Ne contient pas d'accès SQL direct et lève des erreurs métier (UnauthorizedError, ConflictError…).
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        refresh_repo: RefreshTokenRepository,
        jwt_settings: JWTSettings,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.user_repo = user_repo
        self.refresh_repo = refresh_repo
        self.jwt = jwt_settings
        self.now_fn = now_fn

    # ---------- Helpers ----------
    def _issue_pair(self, user: User, *, ip: Optional[str], user_agent: Optional[str]) -> TokenPairOut:
        issued = issue_token_pair(user_id=user.id, email=user.email, role=user.role.value, settings=self.jwt)

        # Persist refresh (révocable)
        self.refresh_repo.create(
            jti=issued.refresh_jti,
            user_id=user.id,
            expires_at=self.now_fn() + self.jwt.refresh_ttl,
            user_agent=user_agent,
            ip=ip,
        )
        return TokenPairOut(
            access_token=issued.access_token,
            refresh_token=issued.refresh_token,
            token_type="bearer",
            expires_in=int(self.jwt.access_ttl.total_seconds()),
        )

    def _decode(self, token: str, expected_type: str) -> dict:
        try:
            return decode_token(token, self.jwt, expected_type=expected_type)
        except WrongTokenType:
            raise UnauthorizedError("Invalid token type")
        except JWTError:
            raise UnauthorizedError("Invalid token")

    # ---------- Register ----------
    def register(self, payload: RegisterIn) -> User:
        if payload.role == UserRole.ADMIN:
            raise InvalidOperationError("Admin accounts cannot be self-registered")

        problems = password_strength_errors(payload.password)
        if problems:
            raise InvalidOperationError("Password does not meet requirements", details=problems)

        if not is_supported_language(payload.preferred_language):
            raise InvalidOperationError(f"Unsupported language: {payload.preferred_language}")

        if self.user_repo.get_by_email(payload.email):
            raise ConflictError("Email already registered")

        user = self.user_repo.create(
            email=payload.email.lower(),
            hashed_password=hash_password(payload.password),
            name=payload.name,
            role=payload.role,
            preferred_language=payload.preferred_language,
        )
        logger.info("User registered id=%s role=%s", user.id, user.role.value)
        return user

    # ---------- Login ----------
    def login(self, payload: LoginIn, *, ip: Optional[str] = None, user_agent: Optional[str] = None) -> TokenPairOut:
        user = self.user_repo.get_by_email(payload.email)
        if not user or not verify_password(payload.password, user.hashed_password):
            # Ne pas révéler si l'utilisateur existe
            raise UnauthorizedError("Invalid credentials")
        if not user.is_active:
            raise UnauthorizedError("Account disabled")
        return self._issue_pair(user, ip=ip, user_agent=user_agent)

    # ---------- Refresh (rotation) ----------
    def refresh(self, payload: RefreshIn, *, ip: Optional[str] = None, user_agent: Optional[str] = None) -> TokenPairOut:
        decoded = self._decode(payload.refresh_token, REFRESH)

        jti = decoded.get("jti")
        if not jti:
            raise UnauthorizedError("Invalid token")

        # Vérifier en base (existe, non révoqué, non expiré)
        rec = self.refresh_repo.get_by_jti(jti)
        if not rec or rec.revoked_at is not None or rec.expires_at <= self.now_fn():
            raise UnauthorizedError("Refresh token invalid")

        user = self.user_repo.get(int(decoded["sub"]))
        if not user or not user.is_active:
            raise UnauthorizedError("User not found")

        # Rotation : révoquer l'ancien et émettre un nouveau couple
        self.refresh_repo.revoke(jti)
        return self._issue_pair(user, ip=ip, user_agent=user_agent)

    # ---------- Logout ----------
    def log_out(self, payload: LogoutIn) -> None:
        try:
            decoded = decode_token(payload.refresh_token, self.jwt, expected_type=REFRESH)
        except JWTError:
            # Logout idempotent : silencieux si token illisible ou d'un autre type
            return

        if not decoded.get("jti"):
            return

        self.refresh_repo.revoke(decoded["jti"])

    # ---------- Current user depuis access token ----------
    def get_current_user(self, *, access_token: str) -> User:
        decoded = self._decode(access_token, ACCESS)
        user = self.user_repo.get(int(decoded["sub"]))
        if not user or not user.is_active:
            raise UnauthorizedError("User not found")
        return user

    # ---------- Changement de mot de passe ----------
    def change_password(self, *, user_id: int, payload: ChangePasswordIn) -> None:
        user = self.user_repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")

        if not verify_password(payload.old_password, user.hashed_password):
            raise UnauthorizedError("Invalid credentials")

        problems = password_strength_errors(payload.new_password)
        if problems:
            raise InvalidOperationError("Password does not meet requirements", details=problems)

        self.user_repo.update(user, hashed_password=hash_password(payload.new_password))
        # Toutes les sessions existantes doivent se reconnecter
        self.refresh_repo.revoke_all_for_user(user.id)
