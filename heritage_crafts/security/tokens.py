"""
JWT de la plateforme (python-jose).

Deux types de tokens, distingués par la claim `typ` :
- access (15 min) : porte `sub`, `email` et `role` ; lu à chaque requête ;
- refresh (30 j) : son `jti` est stocké en base pour permettre la rotation
  et la révocation (logout, changement de mot de passe).
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, TypedDict

from jose import JWTError, jwt

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class JWTSettings:
    secret: str
    issuer: str = "heritage-crafts-api"
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=30)


class DecodedToken(TypedDict, total=False):
    iss: str
    sub: str            # identifiant utilisateur
    email: str
    role: str           # LEARNER | CRAFTSMAN | ADMIN
    typ: str            # access | refresh
    jti: str
    iat: int
    exp: int


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str
    refresh_jti: str


class WrongTokenType(JWTError):
    pass


def new_jti() -> str:
    return str(uuid.uuid4())


def _encode(*, user_id: int, email: str, role: str, typ: str, jti: str, ttl: timedelta, settings: JWTSettings) -> str:
    now = datetime.now(timezone.utc)
    payload: DecodedToken = {
        "iss": settings.issuer,
        "sub": str(user_id),
        "email": email,
        "role": role,
        "typ": typ,
        "jti": jti,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, settings.secret, algorithm=settings.algorithm)


def create_access_token(*, user_id: int, email: str, role: str, settings: JWTSettings) -> str:
    return _encode(
        user_id=user_id, email=email, role=role, typ=ACCESS,
        jti=new_jti(), ttl=settings.access_ttl, settings=settings,
    )


def issue_token_pair(*, user_id: int, email: str, role: str, settings: JWTSettings) -> IssuedTokens:
    """Le `refresh_jti` retourné doit être enregistré par l'appelant (table refresh_token)."""
    jti = new_jti()
    refresh = _encode(
        user_id=user_id, email=email, role=role, typ=REFRESH,
        jti=jti, ttl=settings.refresh_ttl, settings=settings,
    )
    access = create_access_token(user_id=user_id, email=email, role=role, settings=settings)
    return IssuedTokens(access_token=access, refresh_token=refresh, refresh_jti=jti)


def decode_token(token: str, settings: JWTSettings, *, expected_type: Optional[str] = None) -> DecodedToken:
    """
    Vérifie signature, expiration et émetteur.
    Lève JWTError (ou WrongTokenType si `typ` ne correspond pas).
    """
    decoded = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        options={"verify_aud": False},
    )
    if expected_type is not None and decoded.get("typ") != expected_type:
        raise WrongTokenType(f"Expected a {expected_type} token")
    return decoded  # type: ignore[return-value]
