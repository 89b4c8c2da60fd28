"""
➡️ But : Un seul objet `settings` (pydantic-settings) pour toute la plateforme :
DB, JWT, cookie de refresh, S3/MinIO, paiements, traduction, stock, langues.

Les valeurs viennent de l'environnement ou du fichier .env ; les valeurs
dérivées (URL SQLite, cookie secure, max-age) sont calculées dans model_post_init.

🔹 Garde-fous :

DEFAULT_LANGUAGE doit faire partie de SUPPORTED_LANGUAGES.

En prod, le secret JWT par défaut est refusé au démarrage.
"""

from datetime import timedelta
from typing import List, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings
from heritage_crafts.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "Heritage-Crafts"
    APP_VERSION: str = "0.1.0"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "detailed"  # simple | detailed | json

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "heritage_crafts.db"
    # DATABASE_URL prioritaire (Postgres en prod)
    DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = False

    # -----------------------------
    # JWT / Auth
    # -----------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ change en prod
    JWT_ISSUER: str = "heritage-crafts-api"
    JWT_ALGORITHM: str = "HS256"

    ACCESS_TTL_MINUTES: int = 15
    REFRESH_TTL_DAYS: int = 30

    # Cookies (refresh)
    AUTH_REFRESH_COOKIE_NAME: str = "refresh_token"
    AUTH_COOKIE_SAMESITE: str = "lax"     # "lax" | "strict" | "none"
    AUTH_COOKIE_PATH: str = "/api/v1/auth"
    AUTH_COOKIE_SECURE: Optional[bool] = None   # auto selon ENV si None
    AUTH_COOKIE_MAX_AGE: Optional[int] = None   # auto depuis REFRESH_TTL si None

    # -----------------------------
    # Langues
    # -----------------------------
    SUPPORTED_LANGUAGES: List[str] = ["zh-HK", "zh-CN", "en"]
    DEFAULT_LANGUAGE: str = "zh-HK"

    # -----------------------------
    # Media (S3 / MinIO)
    # -----------------------------
    S3_ENDPOINT: str = "http://localhost:9000"
    MINIO_PUBLIC_ENDPOINT: str = "http://localhost:9000"
    S3_REGION: str = "us-east-1"
    S3_KEY: str = "minioadmin"
    S3_SECRET: str = "minioadmin"
    S3_BUCKET: str = "media"
    MAX_UPLOAD_MB: int = 20
    PRESIGN_TTL_SECONDS: int = 600

    # -----------------------------
    # Paiements
    # -----------------------------
    PAYMENT_CURRENCY: str = "HKD"
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_API_BASE: str = "https://api.stripe.com/v1"
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300
    PAYPAL_CLIENT_ID: Optional[str] = None
    PAYPAL_CLIENT_SECRET: Optional[str] = None
    PAYPAL_API_BASE: str = "https://api-m.sandbox.paypal.com"
    # identifiant du webhook côté PayPal ; sans lui, les événements sont rejetés
    PAYPAL_WEBHOOK_ID: Optional[str] = None

    # -----------------------------
    # Traduction
    # -----------------------------
    GOOGLE_TRANSLATE_API_KEY: Optional[str] = None
    DEEPL_API_KEY: Optional[str] = None
    DEEPL_API_BASE: str = "https://api-free.deepl.com/v2"
    TRANSLATION_CACHE_TTL_DAYS: int = 30
    TRANSLATION_CACHE_MAX_ENTRIES: int = 10000
    TRANSLATION_TIMEOUT_SECONDS: float = 10.0

    # -----------------------------
    # Inventaire
    # -----------------------------
    LOW_STOCK_THRESHOLD: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    # -----------------------------
    # Validation
    # -----------------------------
    @model_validator(mode="after")
    def _check_consistency(self):
        if self.DEFAULT_LANGUAGE not in self.SUPPORTED_LANGUAGES:
            raise ValueError(f"DEFAULT_LANGUAGE {self.DEFAULT_LANGUAGE} is not in SUPPORTED_LANGUAGES")
        if self.ENV == "prod" and self.JWT_SECRET_KEY == "CHANGE_ME":
            raise ValueError("JWT_SECRET_KEY must be set in prod")
        return self

    def model_post_init(self, __context):
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")
        if self.AUTH_COOKIE_SECURE is None:
            object.__setattr__(self, "AUTH_COOKIE_SECURE", self.ENV == "prod")
        if self.AUTH_COOKIE_MAX_AGE is None:
            object.__setattr__(self, "AUTH_COOKIE_MAX_AGE", self.REFRESH_TTL_DAYS * 86400)


settings = Settings()

jwt_settings = JWTSettings(
    secret=settings.JWT_SECRET_KEY,
    issuer=settings.JWT_ISSUER,
    algorithm=settings.JWT_ALGORITHM,
    access_ttl=timedelta(minutes=settings.ACCESS_TTL_MINUTES),
    refresh_ttl=timedelta(days=settings.REFRESH_TTL_DAYS),
)
