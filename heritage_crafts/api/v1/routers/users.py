from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_user_service, pagination
from heritage_crafts.db.models.enums import UserRole
from heritage_crafts.db.models.users import User
from heritage_crafts.features.users.schemas import (
    AdminUserUpdateIn,
    LanguageUpdateIn,
    PublicUserOut,
    UserListOut,
    UserOut,
    UserProfileUpdateIn,
)
from heritage_crafts.features.users.services import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Profil courant
# -----------------------------
@router.patch("/me", summary="Modifier mon profil", response_model=UserOut)
def update_me(
    payload: UserProfileUpdateIn,
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return svc.update_profile(user, payload)


@router.put("/me/language", summary="Changer ma langue préférée", response_model=UserOut)
def update_my_language(
    payload: LanguageUpdateIn,
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return svc.update_language(user, payload.language)

# -----------------------------
# Admin
# -----------------------------
@router.get("", summary="Lister les utilisateurs (admin)", response_model=UserListOut)
def list_users(
    role: Optional[UserRole] = Query(None),
    q: Optional[str] = Query(None),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return svc.list_users(user, role=role, q=q, **page)


@router.get("/{user_id}", summary="Profil public d'un utilisateur", response_model=PublicUserOut)
def get_user(user_id: int = Path(..., ge=1), svc: UserService = Depends(get_user_service)):
    return svc.get(user_id)


@router.patch("/{user_id}", summary="Modifier un utilisateur (admin)", response_model=UserOut)
def admin_update_user(
    payload: AdminUserUpdateIn,
    user_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return svc.admin_update(user, user_id, payload)


@router.delete("/{user_id}", summary="Supprimer un utilisateur (admin)", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_user(
    user_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    svc.admin_delete(user, user_id)
    return None
