from fastapi import APIRouter, Depends, Path, Query

from heritage_crafts.api.v1.dependencies import get_current_user, get_social_service, pagination
from heritage_crafts.db.models.users import User
from heritage_crafts.features.social.schemas import ActivityFeedOut, FollowCountsOut, FollowListOut, FollowOut
from heritage_crafts.features.social.services import SocialService

router = APIRouter(
    prefix="/social",
    tags=["social"],
    responses={404: {"description": "Not Found"}},
)


@router.post("/follow/{user_id}", summary="Suivre un utilisateur", response_model=FollowOut)
def follow(
    user_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: SocialService = Depends(get_social_service),
):
    return svc.follow(user, user_id)


@router.delete("/follow/{user_id}", summary="Ne plus suivre un utilisateur", response_model=FollowOut)
def unfollow(
    user_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: SocialService = Depends(get_social_service),
):
    return svc.unfollow(user, user_id)


@router.get("/follow/{user_id}", summary="Est-ce que je suis cet utilisateur ?")
def is_following(
    user_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: SocialService = Depends(get_social_service),
):
    return {"following": svc.is_following(user.id, user_id)}


@router.get("/users/{user_id}/followers", summary="Abonnés d'un utilisateur", response_model=FollowListOut)
def followers(
    user_id: int = Path(..., ge=1),
    page=Depends(pagination),
    svc: SocialService = Depends(get_social_service),
):
    return svc.followers(user_id, **page)


@router.get("/users/{user_id}/following", summary="Abonnements d'un utilisateur", response_model=FollowListOut)
def following(
    user_id: int = Path(..., ge=1),
    page=Depends(pagination),
    svc: SocialService = Depends(get_social_service),
):
    return svc.following(user_id, **page)


@router.get("/users/{user_id}/counts", summary="Compteurs abonnés / abonnements", response_model=FollowCountsOut)
def counts(user_id: int = Path(..., ge=1), svc: SocialService = Depends(get_social_service)):
    return svc.counts(user_id)


@router.get("/feed", summary="Activité des artisans suivis", response_model=ActivityFeedOut)
def activity_feed(
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    svc: SocialService = Depends(get_social_service),
):
    return svc.activity_feed(user, limit=limit)
