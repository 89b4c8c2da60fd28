"""
Fournisseurs de traduction (Google Translate v2, DeepL v2) appelés via httpx.

Chaque fournisseur lève ExternalServiceError en cas d'échec réseau ou HTTP.
"""

from typing import List, Optional

import httpx

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import ExternalServiceError
from heritage_crafts.core.logging_config import get_logger

logger = get_logger(__name__)


class GoogleTranslateProvider:
    name = "google"
    base_url = "https://translation.googleapis.com/language/translate/v2"

    LANGUAGE_CODES = {"zh-HK": "zh-TW", "zh-CN": "zh-CN", "en": "en"}

    def __init__(self, api_key: str, *, client: Optional[httpx.Client] = None, timeout: float = 10.0):
        self.api_key = api_key
        self.client = client or httpx.Client(timeout=timeout)

    def _code(self, language: str) -> str:
        return self.LANGUAGE_CODES.get(language, language)

    def translate_many(self, texts: List[str], source: str, target: str) -> List[str]:
        try:
            resp = self.client.post(
                self.base_url,
                params={"key": self.api_key},
                json={"q": texts, "source": self._code(source), "target": self._code(target), "format": "text"},
            )
            resp.raise_for_status()
            return [t["translatedText"] for t in resp.json()["data"]["translations"]]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Google Translate error: %s", e)
            raise ExternalServiceError("Translation provider error")

    def translate(self, text: str, source: str, target: str) -> str:
        return self.translate_many([text], source, target)[0]


class DeepLProvider:
    name = "deepl"

    LANGUAGE_CODES = {"zh-HK": "ZH", "zh-CN": "ZH", "en": "EN"}
    # DeepL exige une variante pour l'anglais cible
    TARGET_CODES = {"en": "EN-GB"}

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api-free.deepl.com/v2",
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def translate_many(self, texts: List[str], source: str, target: str) -> List[str]:
        data = [("text", t) for t in texts]
        data.append(("source_lang", self.LANGUAGE_CODES.get(source, source.upper())))
        data.append(("target_lang", self.TARGET_CODES.get(target) or self.LANGUAGE_CODES.get(target, target.upper())))
        try:
            resp = self.client.post(
                f"{self.base_url}/translate",
                data=data,
                headers={"Authorization": f"DeepL-Auth-Key {self.api_key}"},
            )
            resp.raise_for_status()
            return [t["text"] for t in resp.json()["translations"]]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("DeepL error: %s", e)
            raise ExternalServiceError("Translation provider error")

    def translate(self, text: str, source: str, target: str) -> str:
        return self.translate_many([text], source, target)[0]


def default_provider():
    """DeepL si configuré, sinon Google, sinon None."""
    if settings.DEEPL_API_KEY:
        return DeepLProvider(
            settings.DEEPL_API_KEY,
            base_url=settings.DEEPL_API_BASE,
            timeout=settings.TRANSLATION_TIMEOUT_SECONDS,
        )
    if settings.GOOGLE_TRANSLATE_API_KEY:
        return GoogleTranslateProvider(
            settings.GOOGLE_TRANSLATE_API_KEY, timeout=settings.TRANSLATION_TIMEOUT_SECONDS
        )
    return None
