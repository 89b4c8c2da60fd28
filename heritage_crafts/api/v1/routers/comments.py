from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_comment_service, get_current_user, pagination
from heritage_crafts.db.models.enums import EntityType, ReportStatus
from heritage_crafts.db.models.users import User
from heritage_crafts.features.comments.schemas import (
    CommentCreateIn,
    CommentListOut,
    CommentOut,
    CommentUpdateIn,
    LikeToggleOut,
    ReportCreateIn,
    ReportListOut,
    ReportOut,
    ReportReviewIn,
)
from heritage_crafts.features.comments.services import CommentService

router = APIRouter(
    prefix="/comments",
    tags=["comments"],
    responses={404: {"description": "Not Found"}},
)

reports_router = APIRouter(
    prefix="/reports",
    tags=["moderation"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Commentaires
# -----------------------------
@router.get("", summary="Commentaires d'une entité", response_model=CommentListOut)
def list_comments(
    entity_type: EntityType = Query(...),
    entity_id: int = Query(..., ge=1),
    include_replies: bool = Query(True),
    page=Depends(pagination),
    svc: CommentService = Depends(get_comment_service),
):
    return svc.list_for_entity(entity_type, entity_id, include_replies=include_replies, **page)


@router.post("", summary="Publier un commentaire", status_code=status.HTTP_201_CREATED, response_model=CommentOut)
def create_comment(
    payload: CommentCreateIn,
    user: User = Depends(get_current_user),
    svc: CommentService = Depends(get_comment_service),
):
    return svc.create(user, payload)


@router.patch("/{comment_id}", summary="Modifier un commentaire", response_model=CommentOut)
def update_comment(
    payload: CommentUpdateIn,
    comment_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CommentService = Depends(get_comment_service),
):
    return svc.update(comment_id, user, payload.content)


@router.delete("/{comment_id}", summary="Supprimer un commentaire", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CommentService = Depends(get_comment_service),
):
    svc.delete(comment_id, user)
    return None


@router.post("/{comment_id}/like", summary="Aimer / ne plus aimer un commentaire", response_model=LikeToggleOut)
def toggle_like(
    comment_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CommentService = Depends(get_comment_service),
):
    return svc.toggle_like(comment_id, user)

# -----------------------------
# Signalements / modération
# -----------------------------
@reports_router.post("", summary="Signaler un contenu", status_code=status.HTTP_201_CREATED, response_model=ReportOut)
def create_report(
    payload: ReportCreateIn,
    user: User = Depends(get_current_user),
    svc: CommentService = Depends(get_comment_service),
):
    return svc.report(user, payload)


@reports_router.get("", summary="Lister les signalements (admin)", response_model=ReportListOut)
def list_reports(
    status_: Optional[ReportStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: CommentService = Depends(get_comment_service),
):
    return svc.list_reports(user, status=status_, **page)


@reports_router.put("/{report_id}", summary="Traiter un signalement (admin)", response_model=ReportOut)
def review_report(
    payload: ReportReviewIn,
    report_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CommentService = Depends(get_comment_service),
):
    return svc.review_report(report_id, user, payload)
