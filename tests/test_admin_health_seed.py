from datetime import timedelta
from pathlib import Path

import pytest
from jose import JWTError
from pydantic import ValidationError
from sqlmodel import func, select

from heritage_crafts.core.config import Settings, jwt_settings
from heritage_crafts.core.errors import ForbiddenError
from heritage_crafts.db.models.coupons import Coupon
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.craftsmen import CraftsmanProfile
from heritage_crafts.db.models.enums import UserRole, VerificationStatus
from heritage_crafts.db.models.products import Product
from heritage_crafts.db.models.users import User
from heritage_crafts.db.seed import load_seed_yaml, seed_all
from heritage_crafts.security.password import hash_password, password_strength_errors, verify_password
from heritage_crafts.security.permissions import Permission, has_permission, require_permission, require_role
from heritage_crafts.security.tokens import WrongTokenType, create_access_token, decode_token, issue_token_pair
from heritage_crafts.utils.multilingual import get_text, normalize_language

SEED_PATH = Path(__file__).resolve().parent.parent / "heritage_crafts" / "db" / "seed_data.yaml"


# -----------------------------
# Admin / santé
# -----------------------------
def test_dashboard_is_admin_only(client, learner, admin, make_craftsman, auth_headers):
    make_craftsman(status=VerificationStatus.PENDING)
    assert client.get("/api/v1/admin/dashboard", headers=auth_headers(learner)).status_code == 403

    body = client.get("/api/v1/admin/dashboard", headers=auth_headers(admin)).json()
    assert body["total_users"] == 3
    assert body["users_by_role"] == {"LEARNER": 1, "CRAFTSMAN": 1, "ADMIN": 1}
    assert body["pending_verifications"] == 1
    assert body["total_orders"] == 0
    assert {a["type"] for a in body["recent_activities"]} == {"user_registered"}


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert body["version"]


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nowhere")
    assert resp.status_code == 404
    assert "detail" in resp.json()


# -----------------------------
# Textes multilingues
# -----------------------------
def test_get_text_fallbacks():
    value = {"zh-HK": "竹編", "en": "Bamboo weaving"}
    assert get_text(value, "en") == "Bamboo weaving"
    assert get_text(value, "zh-CN") == "竹編"
    assert get_text({"en": "Only english"}, "zh-HK") == "Only english"
    assert get_text(value) == "竹編"
    assert get_text(None) == ""
    assert get_text("plain") == "plain"


def test_normalize_language():
    assert normalize_language("en") == "en"
    assert normalize_language("fr") == "zh-HK"
    assert normalize_language(None) == "zh-HK"


# -----------------------------
# Sécurité
# -----------------------------
def test_role_permissions_are_nested():
    assert has_permission(UserRole.LEARNER, Permission.CREATE_ORDER)
    assert not has_permission(UserRole.LEARNER, Permission.CREATE_COURSE)
    assert has_permission(UserRole.CRAFTSMAN, Permission.CREATE_COURSE)
    assert not has_permission(UserRole.CRAFTSMAN, Permission.MODERATE_CONTENT)
    assert has_permission(UserRole.LEARNER, Permission.REGISTER_EVENTS)
    assert not has_permission(UserRole.LEARNER, Permission.CREATE_EVENT)
    assert has_permission(UserRole.CRAFTSMAN, Permission.CREATE_EVENT)
    assert all(has_permission(UserRole.ADMIN, p) for p in Permission)


def test_require_helpers(make_user):
    learner = make_user(UserRole.LEARNER)
    with pytest.raises(ForbiddenError):
        require_permission(learner, Permission.VIEW_ANALYTICS)
    with pytest.raises(ForbiddenError):
        require_role(learner, UserRole.ADMIN, UserRole.CRAFTSMAN)
    require_role(learner, UserRole.LEARNER)


def test_password_hashing_and_strength():
    hashed = hash_password("Str0ng-Passw0rd")
    assert hashed != "Str0ng-Passw0rd"
    assert verify_password("Str0ng-Passw0rd", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("x", "not-a-hash")

    assert password_strength_errors("Str0ng-Passw0rd") == []
    problems = password_strength_errors("short")
    assert "Password must be at least 8 characters long" in problems
    assert "Password must contain at least one number" in problems


def test_access_token_round_trip():
    token = create_access_token(user_id=7, email="a@example.com", role="LEARNER", settings=jwt_settings)
    decoded = decode_token(token, jwt_settings)
    assert decoded["sub"] == "7"
    assert decoded["typ"] == "access"
    with pytest.raises(JWTError):
        decode_token(token + "x", jwt_settings)


# -----------------------------
# Seed
# -----------------------------
def _count(session, model) -> int:
    return session.exec(select(func.count()).select_from(model)).one()


def test_seed_is_idempotent(session):
    seed_all(session, SEED_PATH)
    seed_all(session, SEED_PATH)

    assert _count(session, User) == 4
    assert _count(session, CraftsmanProfile) == 2
    assert _count(session, Course) == 2
    assert _count(session, Product) == 2
    assert _count(session, Coupon) == 2

    admin = session.exec(select(User).where(User.role == UserRole.ADMIN)).one()
    assert admin.email == load_seed_yaml(SEED_PATH)["users"][0]["email"]


def test_seed_yaml_must_exist(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_seed_yaml(tmp_path / "missing.yaml")


def test_openapi_documents_conventions(client):
    schema = client.get("/openapi.json").json()
    assert "ErrorResponse" in schema["components"]["schemas"]
    assert schema["info"]["x-supported-languages"] == ["zh-HK", "zh-CN", "en"]
    assert "/api/v1/search" in schema["paths"]
    assert "/api/v1/events/{event_id}/register" in schema["paths"]
    assert "/api/v1/courses/{course_id}/materials" in schema["paths"]


def test_token_type_is_enforced():
    issued = issue_token_pair(user_id=3, email="b@example.com", role="CRAFTSMAN", settings=jwt_settings)
    assert decode_token(issued.refresh_token, jwt_settings, expected_type="refresh")["jti"] == issued.refresh_jti
    with pytest.raises(WrongTokenType):
        decode_token(issued.refresh_token, jwt_settings, expected_type="access")


# -----------------------------
# Configuration
# -----------------------------
def test_settings_derive_and_validate():
    derived = Settings(SQLITE_PATH="ateliers.db", DATABASE_URL=None, ENV="dev", REFRESH_TTL_DAYS=2)
    assert derived.DATABASE_URL == "sqlite:///ateliers.db"
    assert derived.AUTH_COOKIE_SECURE is False
    assert derived.AUTH_COOKIE_MAX_AGE == 2 * 86400

    with pytest.raises(ValidationError):
        Settings(DEFAULT_LANGUAGE="fr")
    with pytest.raises(ValidationError):
        Settings(ENV="prod", JWT_SECRET_KEY="CHANGE_ME")


def test_timestamps_are_stored_as_naive_utc(session, make_user):
    user = make_user()
    session.expire(user)
    assert user.created_at.tzinfo is None
    assert abs(utcnow() - user.created_at) < timedelta(minutes=1)
