from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from heritage_crafts.api.v1.dependencies import get_auth_service, get_client_ip_and_ua, get_current_user
from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import UnauthorizedError
from heritage_crafts.db.models.users import User
from heritage_crafts.features.authentication.schemas import (
    ChangePasswordIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from heritage_crafts.features.authentication.services import AuthService
from heritage_crafts.features.users.schemas import UserOut

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def refresh_token_from_request(
    payload: Optional[RefreshIn] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=settings.AUTH_REFRESH_COOKIE_NAME),
) -> Optional[str]:
    """Le body est prioritaire sur le cookie httpOnly (clients mobiles sans cookies)."""
    return (payload.refresh_token if payload else None) or refresh_cookie


def _with_refresh_cookie(response: Response, pair: TokenPairOut) -> TokenPairOut:
    response.set_cookie(
        key=settings.AUTH_REFRESH_COOKIE_NAME,
        value=pair.refresh_token,
        httponly=True,
        samesite=settings.AUTH_COOKIE_SAMESITE,
        secure=settings.AUTH_COOKIE_SECURE,
        max_age=settings.AUTH_COOKIE_MAX_AGE,
        path=settings.AUTH_COOKIE_PATH,
    )
    return pair


@router.post(
    "/register",
    summary="Créer un compte apprenant ou artisan",
    status_code=status.HTTP_201_CREATED,
    response_model=UserOut,
)
def register(payload: RegisterIn, svc: AuthService = Depends(get_auth_service)):
    return svc.register(payload)


@router.post("/login", summary="Se connecter", response_model=TokenPairOut)
def login(
    payload: LoginIn,
    response: Response,
    svc: AuthService = Depends(get_auth_service),
    client_ctx=Depends(get_client_ip_and_ua),
):
    pair = svc.login(payload, ip=client_ctx.ip, user_agent=client_ctx.user_agent)
    return _with_refresh_cookie(response, pair)


@router.post(
    "/refresh",
    summary="Renouveler les tokens (rotation du refresh)",
    description="Le refresh est lu dans le body, sinon dans le cookie httpOnly.",
    response_model=TokenPairOut,
)
def refresh(
    response: Response,
    refresh_token: Optional[str] = Depends(refresh_token_from_request),
    svc: AuthService = Depends(get_auth_service),
    client_ctx=Depends(get_client_ip_and_ua),
):
    if not refresh_token:
        raise UnauthorizedError("Missing refresh token")
    pair = svc.refresh(
        RefreshIn(refresh_token=refresh_token),
        ip=client_ctx.ip,
        user_agent=client_ctx.user_agent,
    )
    return _with_refresh_cookie(response, pair)


@router.post("/logout", summary="Se déconnecter", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    response: Response,
    refresh_token: Optional[str] = Depends(refresh_token_from_request),
    svc: AuthService = Depends(get_auth_service),
):
    if refresh_token:
        svc.log_out(LogoutIn(refresh_token=refresh_token))
    response.delete_cookie(key=settings.AUTH_REFRESH_COOKIE_NAME, path=settings.AUTH_COOKIE_PATH)


@router.get("/me", summary="Utilisateur connecté", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.post(
    "/change-password",
    summary="Changer le mot de passe (révoque toutes les sessions)",
    status_code=status.HTTP_204_NO_CONTENT,
)
def change_password(
    payload: ChangePasswordIn,
    user: User = Depends(get_current_user),
    svc: AuthService = Depends(get_auth_service),
):
    svc.change_password(user_id=user.id, payload=payload)
