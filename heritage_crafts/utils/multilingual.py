from typing import Dict, Optional, Union

from heritage_crafts.core.config import settings

MultilingualText = Union[Dict[str, str], str, None]


def is_supported_language(code: Optional[str]) -> bool:
    return bool(code) and code in settings.SUPPORTED_LANGUAGES


def normalize_language(code: Optional[str]) -> str:
    """Retourne la langue si supportée, sinon la langue par défaut (zh-HK)."""
    return code if is_supported_language(code) else settings.DEFAULT_LANGUAGE


def get_text(value: MultilingualText, language: Optional[str] = None) -> str:
    """
    Extrait le texte d'un champ multilingue.

    Ordre : clé exacte, puis même préfixe de langue (zh-CN -> zh-HK),
    puis première valeur non vide.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if not isinstance(value, dict) or not value:
        return ""

    lang = language or settings.DEFAULT_LANGUAGE
    if value.get(lang):
        return value[lang]

    prefix = lang.split("-")[0]
    for key, text in value.items():
        if text and key.split("-")[0] == prefix:
            return text

    for text in value.values():
        if text:
            return text
    return ""

