"""Router API v1 — agrega todos os sub-routers."""

from fastapi import APIRouter

from app.presentation.api.v1.endpoints.auth import router as auth_router
from app.presentation.api.v1.endpoints.users import router as users_router
from app.presentation.api.v1.endpoints.tickets import router as tickets_router
from app.presentation.api.v1.endpoints.knowledge import router as knowledge_router
from app.presentation.api.v1.endpoints.settings import router as settings_router
from app.presentation.api.v1.endpoints.dashboard import router as dashboard_router

api_v1_router = APIRouter()

api_v1_router.include_router(auth_router, prefix="/auth", tags=["🔐 Autenticação"])
api_v1_router.include_router(users_router, prefix="/users", tags=["👤 Usuários"])
api_v1_router.include_router(tickets_router, prefix="/tickets", tags=["🎫 Tickets"])
api_v1_router.include_router(knowledge_router, prefix="/knowledge", tags=["📚 Base de Conhecimento"])
api_v1_router.include_router(settings_router, prefix="/settings", tags=["⚙️ Configuração"])
api_v1_router.include_router(dashboard_router, prefix="/dashboard", tags=["📊 Dashboard"])
