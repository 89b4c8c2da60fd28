import os

# Doit précéder tout import de heritage_crafts (settings chargés à l'import)
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["LOG_LEVEL"] = "WARNING"

import itertools
from decimal import Decimal
from typing import Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from heritage_crafts.api.v1.dependencies import (
    get_media_service,
    get_payment_gateways,
    get_translation_provider,
)
from heritage_crafts.core.config import jwt_settings
from heritage_crafts.core.errors import ExternalServiceError
from heritage_crafts.db.models.craftsmen import CraftsmanProfile
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.enums import UserRole, VerificationStatus
from heritage_crafts.db.models.products import Product
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.media import MediaFileRepository
from heritage_crafts.db.session import get_session, json_serializer
from heritage_crafts.features.media.services import MediaService
from heritage_crafts.features.payments.gateways import GatewayResult
from heritage_crafts.main import app
from heritage_crafts.security.password import hash_password
from heritage_crafts.security.tokens import create_access_token

PASSWORD = "Str0ng-Passw0rd"
_hashed = hash_password(PASSWORD)
_seq = itertools.count(1)


# -----------------------------
# Fakes (prestataires externes)
# -----------------------------
class FakeGateway:
    def __init__(self, name: str, *, succeed: bool = True, error: str = "Card declined"):
        self.name = name
        self.succeed = succeed
        self.error = error
        self.charges: List[dict] = []
        self.refunds: List[dict] = []
        self.webhook_valid = True
        self.verified_events: List[dict] = []

    def charge(self, *, order_id, amount, currency, payment_method_id) -> GatewayResult:
        self.charges.append(dict(order_id=order_id, amount=amount, currency=currency, pm=payment_method_id))
        if not self.succeed:
            return GatewayResult(success=False, transaction_id=f"{self.name}_fail_{order_id}", error=self.error)
        return GatewayResult(success=True, transaction_id=f"{self.name}_tx_{order_id}")

    def refund(self, *, transaction_id, amount, currency) -> GatewayResult:
        self.refunds.append(dict(transaction_id=transaction_id, amount=amount, currency=currency))
        return GatewayResult(success=True, transaction_id=f"re_{transaction_id}")

    def verify_webhook(self, *, headers, event) -> bool:
        self.verified_events.append(event)
        return self.webhook_valid


class FakeTranslationProvider:
    name = "fake"

    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.calls: List[tuple] = []

    def translate(self, text: str, source: str, target: str) -> str:
        self.calls.append((text, source, target))
        if self.fail:
            raise ExternalServiceError("Translation provider error")
        return f"[{target}] {text}"


class FakeS3:
    def __init__(self):
        self.objects: Dict[str, bytes] = {}

    def upload_fileobj(self, Fileobj, Bucket, Key, ExtraArgs=None):
        self.objects[Key] = Fileobj.read()

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn):
        return f"http://s3.test/{Params['Bucket']}/{Params['Key']}?expires={ExpiresIn}"


# -----------------------------
# DB / client
# -----------------------------
@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        json_serializer=json_serializer,
    )
    SQLModel.metadata.create_all(eng)
    yield eng
    SQLModel.metadata.drop_all(eng)


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def gateways():
    return {"stripe": FakeGateway("stripe"), "paypal": FakeGateway("paypal")}


@pytest.fixture
def translation_provider():
    return FakeTranslationProvider()


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def client(session, gateways, translation_provider, fake_s3):
    def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_payment_gateways] = lambda: gateways
    app.dependency_overrides[get_translation_provider] = lambda: translation_provider
    app.dependency_overrides[get_media_service] = lambda: MediaService(
        repo=MediaFileRepository(session),
        s3_client_internal_factory=lambda: fake_s3,
        s3_client_public_factory=lambda: fake_s3,
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


# -----------------------------
# Données
# -----------------------------
@pytest.fixture
def make_user(session) -> Callable[..., User]:
    def _make(role: UserRole = UserRole.LEARNER, *, name: Optional[str] = None, language: str = "zh-HK") -> User:
        n = next(_seq)
        user = User(
            email=f"user{n}@example.com",
            hashed_password=_hashed,
            name=name or f"User {n}",
            role=role,
            preferred_language=language,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(user_id=user.id, email=user.email, role=user.role.value, settings=jwt_settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def learner(make_user) -> User:
    return make_user(UserRole.LEARNER)


@pytest.fixture
def admin(make_user) -> User:
    return make_user(UserRole.ADMIN, name="Admin")


@pytest.fixture
def make_craftsman(session, make_user) -> Callable[..., CraftsmanProfile]:
    def _make(
        *,
        specialties: Optional[List[str]] = None,
        status: VerificationStatus = VerificationStatus.VERIFIED,
        experience_years: int = 10,
        location: str = "深水埗",
    ) -> CraftsmanProfile:
        user = make_user(UserRole.CRAFTSMAN)
        profile = CraftsmanProfile(
            user_id=user.id,
            craft_specialties=specialties or ["竹編"],
            bio={"zh-HK": "傳統工藝師傅", "en": "Traditional craft master"},
            experience_years=experience_years,
            workshop_location=location,
            verification_status=status,
        )
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def craftsman(make_craftsman) -> CraftsmanProfile:
    return make_craftsman()


@pytest.fixture
def craftsman_user(session, craftsman) -> User:
    return session.get(User, craftsman.user_id)


@pytest.fixture
def make_course(session) -> Callable[..., Course]:
    def _make(craftsman_id: int, **overrides) -> Course:
        fields = dict(
            craftsman_id=craftsman_id,
            title={"zh-HK": "竹編工作坊", "en": "Bamboo Weaving Workshop"},
            description={"en": "Learn to weave bamboo baskets with a master"},
            craft_category="竹編",
            max_participants=10,
            duration_hours=Decimal("2.00"),
            price=Decimal("300.00"),
        )
        fields.update(overrides)
        course = Course(**fields)
        session.add(course)
        session.commit()
        session.refresh(course)
        return course

    return _make


@pytest.fixture
def make_product(session) -> Callable[..., Product]:
    def _make(craftsman_id: int, **overrides) -> Product:
        fields = dict(
            craftsman_id=craftsman_id,
            name={"zh-HK": "竹編籃", "en": "Bamboo Basket"},
            description={"en": "Hand woven basket"},
            price=Decimal("100.00"),
            inventory_quantity=10,
            craft_category="竹編",
        )
        fields.update(overrides)
        product = Product(**fields)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make
