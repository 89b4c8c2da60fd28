from datetime import timedelta

import httpx
import pytest

from heritage_crafts.api.v1.dependencies import get_translation_provider
from heritage_crafts.core.errors import ExternalServiceError
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.repositories.translations import TranslationCacheRepository
from heritage_crafts.features.translations.providers import DeepLProvider, GoogleTranslateProvider
from heritage_crafts.features.translations.services import TranslationService, assess_quality
from heritage_crafts.main import app


def _translate(client, headers, text="Bamboo weaving", source="en", target="zh-HK"):
    return client.post(
        "/api/v1/translations",
        json={"text": text, "source_language": source, "target_language": target},
        headers=headers,
    )


def test_translation_is_cached(client, learner, auth_headers, translation_provider):
    headers = auth_headers(learner)

    first = _translate(client, headers).json()
    assert first == {
        "translated_text": "[zh-HK] Bamboo weaving",
        "source_language": "en",
        "target_language": "zh-HK",
        "provider": "fake",
        "cached": False,
    }
    second = _translate(client, headers).json()
    assert second["cached"] is True
    assert len(translation_provider.calls) == 1

    stats = client.get("/api/v1/translations/cache/stats", headers=headers).json()
    assert stats["total_entries"] == 1
    assert stats["total_uses"] == 2


def test_same_language_or_unsupported(client, learner, auth_headers, translation_provider):
    headers = auth_headers(learner)
    assert _translate(client, headers, source="en", target="en").json()["translated_text"] == "Bamboo weaving"
    assert translation_provider.calls == []
    assert _translate(client, headers, target="fr").status_code == 400


def test_provider_failures(client, learner, auth_headers, translation_provider):
    headers = auth_headers(learner)
    translation_provider.fail = True
    assert _translate(client, headers).status_code == 502

    resp = client.post(
        "/api/v1/translations/batch",
        json={"texts": ["a", "b"], "source_language": "en", "target_language": "zh-CN"},
        headers=headers,
    )
    assert resp.json() == {"items": ["a", "b"]}


def test_no_provider_configured(client, learner, auth_headers):
    app.dependency_overrides[get_translation_provider] = lambda: None
    assert _translate(client, auth_headers(learner)).status_code == 502


def test_translate_content_fills_missing_languages(client, learner, auth_headers):
    resp = client.post(
        "/api/v1/translations/content",
        json={"content": {"en": "Lion dance", "zh-HK": "舞獅"}, "target_languages": ["zh-HK", "zh-CN"]},
        headers=auth_headers(learner),
    )
    assert resp.json() == {"en": "Lion dance", "zh-HK": "舞獅", "zh-CN": "[zh-CN] Lion dance"}

    resp = client.post(
        "/api/v1/translations/content",
        json={"content": {"en": ""}, "target_languages": ["zh-HK"]},
        headers=auth_headers(learner),
    )
    assert resp.status_code == 400


def test_quality_endpoint(client):
    resp = client.post(
        "/api/v1/translations/quality",
        json={"source_text": "Hello", "translated_text": "Hello", "source_language": "en", "target_language": "zh-HK"},
    )
    body = resp.json()
    assert body["needs_review"] is True
    assert "Text appears untranslated" in body["issues"]
    assert "No Chinese characters in Chinese translation" in body["issues"]


def test_assess_quality_good_and_empty():
    good = assess_quality("Bamboo basket", "竹編籃子", "en", "zh-HK")
    assert good.score == 1.0 and good.issues == []
    assert assess_quality("x", "  ", "en", "zh-HK").score == 0.0
    tags = assess_quality("<b>Hi</b>", "Hi there", "en", "en")
    assert "HTML markup not preserved" in tags.issues


def test_clear_expired_is_admin_only(client, learner, admin, auth_headers):
    assert client.delete("/api/v1/translations/cache/expired", headers=auth_headers(learner)).status_code == 403
    assert client.delete("/api/v1/translations/cache/expired", headers=auth_headers(admin)).json() == {"deleted": 0}


# -----------------------------
# Service : expiration et éviction
# -----------------------------
def test_expired_entries_are_refreshed(session, translation_provider):
    clock = {"now": utcnow()}
    svc = TranslationService(
        repo=TranslationCacheRepository(session), provider=translation_provider, now_fn=lambda: clock["now"]
    )
    svc.translate("Kite", "en", "zh-HK")
    clock["now"] += timedelta(days=31)

    assert svc.cache_stats().expired_entries == 1
    assert svc.translate("Kite", "en", "zh-HK").cached is False
    assert len(translation_provider.calls) == 2


def test_cache_evicts_least_used_when_full(session, translation_provider):
    svc = TranslationService(repo=TranslationCacheRepository(session), provider=translation_provider, max_entries=3)
    for word in ("one", "two", "three"):
        svc.translate(word, "en", "zh-HK")
    svc.translate("two", "en", "zh-HK")
    svc.translate("three", "en", "zh-HK")

    svc.translate("four", "en", "zh-HK")
    assert svc.cache_stats().total_entries == 3
    assert svc.translate("one", "en", "zh-HK").cached is False


# -----------------------------
# Fournisseurs HTTP
# -----------------------------
def test_google_provider_maps_language_codes():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"data": {"translations": [{"translatedText": "竹編"}]}})

    provider = GoogleTranslateProvider("key", client=httpx.Client(transport=httpx.MockTransport(handler)))
    assert provider.translate("Bamboo weaving", "en", "zh-HK") == "竹編"
    assert seen["params"]["key"] == "key"
    assert '"target": "zh-TW"' in seen["body"] or '"target":"zh-TW"' in seen["body"]


def test_deepl_provider_errors_become_external_errors():
    def handler(request):
        return httpx.Response(456, json={"message": "Quota exceeded"})

    provider = DeepLProvider("key", client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(ExternalServiceError):
        provider.translate("Hello", "en", "zh-HK")
