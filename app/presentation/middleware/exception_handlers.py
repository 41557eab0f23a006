"""
Exception handlers globais — converte exceções de domínio/aplicação
em respostas HTTP padronizadas.

Toda resposta de erro carrega `error`, `detail` e o `request_id`.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from app.domain.shared.errors import (
    AuthenticationError,
    ChannelClosedError,
    ConflictError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from app.domain.systems.users.authorization_service import AuthorizationError

logger = logging.getLogger(__name__)


def _body(request: Request, error: str, detail: str, **extra) -> dict:
    return {
        "error": error,
        "detail": detail,
        **extra,
        "request_id": getattr(request.state, "request_id", None),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """Registra todos os handlers de exceção na app FastAPI."""

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=_body(request, "unauthorized", str(exc)),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(request: Request, exc: AuthorizationError):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content=_body(request, "forbidden", str(exc)),
        )

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=_body(request, "not_found", str(exc), resource=exc.resource),
        )

    @app.exception_handler(ConflictError)
    async def conflict_error_handler(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_body(request, "conflict", str(exc)),
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_body(request, "validation_error", str(exc), field=exc.field),
        )

    @app.exception_handler(ChannelClosedError)
    async def channel_closed_handler(request: Request, exc: ChannelClosedError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_body(request, "channel_closed", str(exc), retryable=False),
        )

    async def transient_error_handler(request: Request, exc: Exception):
        logger.warning("Falha transitória em %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_body(
                request,
                "transient_store_error",
                "Banco de dados indisponível no momento, tente novamente",
                retryable=True,
            ),
        )

    for exc_class in (TransientStoreError, OperationalError, InterfaceError):
        app.add_exception_handler(exc_class, transient_error_handler)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s %s: %s\n%s",
            request.method,
            request.url.path,
            exc,
            traceback.format_exc(),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_body(request, "internal_server_error", "Erro interno do servidor"),
        )
