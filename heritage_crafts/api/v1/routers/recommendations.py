from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import (
    get_behavior_service,
    get_current_user,
    get_optional_user,
    get_recommendation_service,
)
from heritage_crafts.db.models.enums import EntityType
from heritage_crafts.db.models.users import User
from heritage_crafts.features.recommendations.schemas import (
    BehaviorEventIn,
    BehaviorEventOut,
    RecommendationSectionOut,
    RecommendationsOut,
    UserPreferencesOut,
)
from heritage_crafts.features.recommendations.services import BehaviorService, RecommendationService

router = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"],
    responses={404: {"description": "Not Found"}},
)


@router.get("", summary="Recommandations (personnalisées si connecté)", response_model=RecommendationsOut)
def recommendations(
    limit: int = Query(20, ge=1, le=100),
    user: Optional[User] = Depends(get_optional_user),
    svc: RecommendationService = Depends(get_recommendation_service),
):
    return svc.recommendations(user, limit=limit)


@router.get("/preferences", summary="Préférences déduites de mon activité", response_model=UserPreferencesOut)
def preferences(
    user: User = Depends(get_current_user),
    svc: RecommendationService = Depends(get_recommendation_service),
):
    return svc.preferences(user)


@router.get("/similar/{entity_type}/{entity_id}", summary="Contenus similaires", response_model=RecommendationSectionOut)
def similar(
    entity_type: EntityType,
    entity_id: int = Path(..., ge=1),
    limit: int = Query(10, ge=1, le=50),
    language: Optional[str] = Query(None),
    svc: RecommendationService = Depends(get_recommendation_service),
):
    return svc.similar(entity_type, entity_id, limit=limit, language=language)


@router.post("/events", summary="Enregistrer un événement de navigation", status_code=status.HTTP_201_CREATED, response_model=BehaviorEventOut)
def track_event(
    payload: BehaviorEventIn,
    user: Optional[User] = Depends(get_optional_user),
    svc: BehaviorService = Depends(get_behavior_service),
):
    return svc.track(user.id if user else None, payload)
