from typing import Dict

from fastapi import APIRouter, Depends

from heritage_crafts.api.v1.dependencies import get_current_user, get_translation_service
from heritage_crafts.db.models.users import User
from heritage_crafts.features.translations.schemas import (
    CacheStatsOut,
    ClearExpiredOut,
    QualityIn,
    QualityOut,
    TranslateBatchIn,
    TranslateBatchOut,
    TranslateContentIn,
    TranslateIn,
    TranslationOut,
)
from heritage_crafts.features.translations.services import TranslationService, assess_quality

router = APIRouter(
    prefix="/translations",
    tags=["translations"],
    responses={502: {"description": "Prestataire de traduction indisponible"}},
)


@router.post("", summary="Traduire un texte", response_model=TranslationOut)
def translate(
    payload: TranslateIn,
    _: User = Depends(get_current_user),
    svc: TranslationService = Depends(get_translation_service),
):
    return svc.translate(payload.text, payload.source_language, payload.target_language)


@router.post("/batch", summary="Traduire plusieurs textes", response_model=TranslateBatchOut)
def translate_batch(
    payload: TranslateBatchIn,
    _: User = Depends(get_current_user),
    svc: TranslationService = Depends(get_translation_service),
):
    return TranslateBatchOut(
        items=svc.translate_batch(payload.texts, payload.source_language, payload.target_language)
    )


@router.post("/content", summary="Compléter un contenu multilingue", response_model=Dict[str, str])
def translate_content(
    payload: TranslateContentIn,
    _: User = Depends(get_current_user),
    svc: TranslationService = Depends(get_translation_service),
):
    return svc.translate_content(payload.content, payload.target_languages, payload.source_language)


@router.post("/quality", summary="Évaluer la qualité d'une traduction", response_model=QualityOut)
def quality(payload: QualityIn):
    return assess_quality(
        payload.source_text, payload.translated_text, payload.source_language, payload.target_language
    )


@router.get("/cache/stats", summary="Statistiques du cache de traduction", response_model=CacheStatsOut)
def cache_stats(_: User = Depends(get_current_user), svc: TranslationService = Depends(get_translation_service)):
    return svc.cache_stats()


@router.delete("/cache/expired", summary="Purger le cache expiré (admin)", response_model=ClearExpiredOut)
def clear_expired(user: User = Depends(get_current_user), svc: TranslationService = Depends(get_translation_service)):
    return svc.clear_expired(user)
