from fastapi import APIRouter, Depends, File, Path, UploadFile, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_media_service, pagination
from heritage_crafts.db.models.users import User
from heritage_crafts.features.media.schemas import MediaListOut, MediaOut, SignedUrlOut
from heritage_crafts.features.media.services import MediaService

router = APIRouter(
    prefix="/media",
    tags=["media"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Upload (création)
# -----------------------------
@router.post(
    "/upload",
    summary="Uploader une image ou une vidéo (Back → S3 → DB)",
    description="Reçoit un fichier, le charge dans le bucket et enregistre ses métadonnées.",
    status_code=status.HTTP_201_CREATED,
    response_model=MediaOut,
)
async def upload_media(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    svc: MediaService = Depends(get_media_service),
):
    return await svc.upload(file, owner=user)


@router.get("/me", summary="Mes fichiers", response_model=MediaListOut)
def list_my_media(
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: MediaService = Depends(get_media_service),
):
    return svc.list_mine(user, **page)

# -----------------------------
# URL signée (lecture)
# -----------------------------
@router.get("/{media_id}/signed", summary="Obtenir une URL GET signée (temporaire)", response_model=SignedUrlOut)
def get_signed_url(
    media_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: MediaService = Depends(get_media_service),
):
    return svc.signed_url(media_id, user)

# -----------------------------
# Suppression
# -----------------------------
@router.delete(
    "/{media_id}",
    summary="Supprimer un fichier (objet S3 + ligne DB)",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Supprimé"},
        401: {"description": "Non authentifié"},
        403: {"description": "Interdit"},
        404: {"description": "Introuvable"},
    },
)
def delete_media(
    media_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: MediaService = Depends(get_media_service),
):
    svc.delete(media_id, user)
    return None
