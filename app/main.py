"""
Ponto de entrada principal da aplicação FastAPI.

    uvicorn app.main:app --reload --port 8000

Inclui: middleware (CORS, Request ID, logging, security headers),
exception handlers globais, registro dos handlers de eventos pós-commit,
encerramento do change feed ao vivo e health check com ping ao banco.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.infrastructure.config import get_settings
from app.infrastructure.database.session import AsyncSessionLocal
from app.infrastructure.realtime.change_feed import get_change_feed
from app.presentation.api.v1.router import api_v1_router
from app.presentation.middleware.exception_handlers import register_exception_handlers
from app.presentation.middleware.request_id import RequestIdMiddleware
from app.presentation.middleware.security_headers import SecurityHeadersMiddleware

settings = get_settings()

# ── Logging ──
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════
# LIFESPAN — startup / shutdown
# ════════════════════════════════════════════════════════════════
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    from app.application.shared.event_handlers import register_all_handlers
    register_all_handlers()
    logger.info("✅ App started — event handlers registered")
    yield
    # Shutdown: assinaturas ao vivo recebem channel_closed
    get_change_feed().close()
    logger.info("🛑 App shutting down")


# ════════════════════════════════════════════════════════════════
# APP
# ════════════════════════════════════════════════════════════════
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "API do portal de suporte de TI: tickets com comentários, histórico de "
        "auditoria e atualizações ao vivo, usuários com RBAC (admin/support/user), "
        "base de conhecimento, configuração do portal e dashboard."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
    responses={
        400: {"description": "Erro de validação de domínio"},
        401: {"description": "Token inválido ou ausente"},
        403: {"description": "Permissão insuficiente"},
        404: {"description": "Recurso não encontrado"},
        422: {"description": "Erro de validação"},
        500: {"description": "Erro interno do servidor"},
        503: {"description": "Falha transitória do banco (retryable)"},
    },
)

# ── Middleware ──
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(SecurityHeadersMiddleware)

# ── Exception handlers globais ──
register_exception_handlers(app)

# ── Rotas versionadas ──
app.include_router(api_v1_router, prefix="/api/v1")


# ════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ════════════════════════════════════════════════════════════════
@app.get(
    "/health",
    tags=["❤️ Health"],
    summary="Verificação de saúde da API",
    description="Retorna status da API, conectividade com o banco e estado do feed ao vivo.",
)
async def health_check():
    db_ok = False
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            db_ok = True
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Health check: banco indisponível: %s", exc)

    feed = get_change_feed()
    return {
        "status": "ok" if db_ok else "degraded",
        "version": settings.APP_VERSION,
        "database": "connected" if db_ok else "disconnected",
        "live_feed": "closed" if feed.closed else "open",
        "live_subscriptions": feed.subscriber_count,
    }
