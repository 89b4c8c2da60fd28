"""
➡️ But : Traduction automatique avec cache en base.

translate() consulte d'abord TranslationCache (hash du texte + paire de langues),
puis appelle le fournisseur configuré et mémorise le résultat 30 jours.

🔹 Quand le cache atteint sa taille max, les 10 % d'entrées les moins utilisées sont supprimées.
"""

import hashlib
import re
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import ExternalServiceError, ForbiddenError, InvalidOperationError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.translations import TranslationCacheRepository
from heritage_crafts.features.translations.schemas import (
    CacheStatsOut,
    ClearExpiredOut,
    QualityOut,
    TranslationOut,
)
from heritage_crafts.utils.multilingual import is_supported_language

logger = get_logger(__name__)

HTML_TAG = re.compile(r"<[^>]+>")
CJK = re.compile(r"[\u4e00-\u9fff]")


def source_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def assess_quality(source_text: str, translated_text: str, source_language: str, target_language: str) -> QualityOut:
    issues: List[str] = []
    score = 1.0
    confidence = 0.8

    if not translated_text or not translated_text.strip():
        return QualityOut(score=0.0, confidence=0.0, needs_review=True, issues=["Empty translation"])

    ratio = len(translated_text) / len(source_text) if source_text else 1.0
    if ratio < 0.3 or ratio > 3.0:
        issues.append("Unusual length ratio")
        score -= 0.2

    if source_text == translated_text and source_language != target_language:
        issues.append("Text appears untranslated")
        score -= 0.3

    if "[AUTO-TRANSLATED" in translated_text:
        issues.append("Contains translation artifacts")
        score -= 0.1

    if len(HTML_TAG.findall(source_text)) != len(HTML_TAG.findall(translated_text)):
        issues.append("HTML markup not preserved")
        score -= 0.1

    if target_language.startswith("zh") and not CJK.search(translated_text):
        issues.append("No Chinese characters in Chinese translation")
        score -= 0.3

    score = round(max(0.0, min(1.0, score)), 2)
    return QualityOut(score=score, confidence=confidence, needs_review=score < 0.7 or bool(issues), issues=issues)


class TranslationService:
    def __init__(
        self,
        *,
        repo: TranslationCacheRepository,
        provider=None,
        now_fn: Callable[[], datetime] = utcnow,
        ttl_days: int = settings.TRANSLATION_CACHE_TTL_DAYS,
        max_entries: int = settings.TRANSLATION_CACHE_MAX_ENTRIES,
    ):
        self.repo = repo
        self.provider = provider
        self.now_fn = now_fn
        self.ttl = timedelta(days=ttl_days)
        self.max_entries = max_entries

    # --------------- Helpers ---------------
    @staticmethod
    def _check_languages(*languages: str) -> None:
        for lang in languages:
            if not is_supported_language(lang):
                raise InvalidOperationError(f"Unsupported language: {lang}")

    def _require_provider(self):
        if self.provider is None:
            raise ExternalServiceError("No translation provider configured")
        return self.provider

    def _evict_if_full(self) -> None:
        total = self.repo.count()
        if total >= self.max_entries:
            removed = self.repo.delete_least_used(max(1, self.max_entries // 10))
            logger.info("Translation cache full (%s entries): evicted %s", total, removed)

    def _store(self, text: str, source: str, target: str, translated: str, provider_name: str) -> None:
        self._evict_if_full()
        now = self.now_fn()
        self.repo.create(
            source_hash=source_hash(text),
            source_text=text,
            source_language=source,
            target_language=target,
            translated_text=translated,
            provider=provider_name,
            use_count=1,
            last_used=now,
            expires_at=now + self.ttl,
        )

    def _cached(self, text: str, source: str, target: str) -> Optional[str]:
        entry = self.repo.get_entry(source_hash(text), source, target)
        if entry is None:
            return None
        now = self.now_fn()
        if entry.expires_at <= now:
            self.repo.delete(entry)
            return None
        self.repo.update(entry, use_count=entry.use_count + 1, last_used=now)
        return entry.translated_text

    # --------------- Traduction ---------------
    def translate(self, text: str, source: str, target: str) -> TranslationOut:
        self._check_languages(source, target)
        if source == target or not text.strip():
            return TranslationOut(translated_text=text, source_language=source, target_language=target)

        cached = self._cached(text, source, target)
        if cached is not None:
            return TranslationOut(
                translated_text=cached, source_language=source, target_language=target, cached=True
            )

        provider = self._require_provider()
        translated = provider.translate(text, source, target)
        self._store(text, source, target, translated, provider.name)
        logger.debug("Translated %s chars %s -> %s via %s", len(text), source, target, provider.name)
        return TranslationOut(
            translated_text=translated, source_language=source, target_language=target, provider=provider.name
        )

    def translate_batch(self, texts: List[str], source: str, target: str) -> List[str]:
        """Un échec sur un texte renvoie le texte source à sa place."""
        self._check_languages(source, target)
        out = []
        for text in texts:
            try:
                out.append(self.translate(text, source, target).translated_text)
            except ExternalServiceError as e:
                logger.warning("Batch translation fallback for one text: %s", e)
                out.append(text)
        return out

    def translate_content(
        self, content: Dict[str, str], target_languages: List[str], source_language: Optional[str] = None
    ) -> Dict[str, str]:
        """Complète un champ multilingue avec les langues manquantes."""
        source = source_language or next((lang for lang, text in content.items() if text), None)
        if not source or not content.get(source):
            raise InvalidOperationError("No source content available for translation")
        self._check_languages(source, *target_languages)

        updated = dict(content)
        for target in target_languages:
            if target == source or updated.get(target):
                continue
            try:
                updated[target] = self.translate(content[source], source, target).translated_text
            except ExternalServiceError as e:
                logger.warning("Could not translate content to %s: %s", target, e)
        return updated

    # --------------- Cache ---------------
    def cache_stats(self) -> CacheStatsOut:
        return CacheStatsOut(
            total_entries=self.repo.count(),
            expired_entries=self.repo.count_expired(self.now_fn()),
            total_uses=self.repo.total_uses(),
            max_entries=self.max_entries,
        )

    def clear_expired(self, actor: User) -> ClearExpiredOut:
        if not actor.is_admin:
            raise ForbiddenError("Forbidden")
        deleted = self.repo.delete_expired(self.now_fn())
        logger.info("Translation cache: %s expired entries removed", deleted)
        return ClearExpiredOut(deleted=deleted)
