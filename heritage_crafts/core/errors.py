"""
➡️ But : Exceptions métier partagées par tous les services + leur traduction HTTP.

Les services lèvent NotFoundError, ForbiddenError, ConflictError…
Les handlers enregistrés par setup_exception_handlers(app) les transforment
en réponses JSON {"detail": "..."} avec le bon code HTTP.

🔹 Avantages :

Les services restent indépendants de FastAPI.

Les routes n'ont plus besoin de try/except répétitifs.
"""

import traceback
import uuid

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from heritage_crafts.core.logging_config import get_logger

logger = get_logger(__name__)


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "", *, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidOperationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PaymentFailedError(DomainError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED


class ForbiddenError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError, LookupError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT


class ExternalServiceError(DomainError):
    status_code = status.HTTP_502_BAD_GATEWAY


# -----------------------------
# Handlers
# -----------------------------
async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)

    content = {"detail": exc.message}
    if exc.details is not None:
        content["errors"] = exc.details
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Dernier filet : log complet avec un error_id que le client peut remonter.
    """
    error_id = uuid.uuid4().hex[:12]
    logger.error(
        "Unhandled exception [%s] in %s %s: %s",
        error_id,
        request.method,
        request.url.path,
        exc,
        exc_info=True,
        extra={
            "error_id": error_id,
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error_id": error_id},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered")
