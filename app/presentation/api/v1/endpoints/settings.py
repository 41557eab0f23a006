"""Endpoints da configuração do portal — /api/v1/settings"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.domain.systems.users.entity import User
from app.infrastructure.config import get_settings
from app.infrastructure.systems.settings.repository import SettingsRepository
from app.application.shared.unit_of_work import UnitOfWork
from app.application.dtos.settings_dtos import UpdateSettingsCommand
from app.application.systems.settings.use_cases import GetSettingsUseCase, UpdateSettingsUseCase
from app.presentation.api.v1.schemas import SettingsOut, SettingsUpdate
from app.presentation.api.v1.deps import get_current_active_user, get_settings_repo, get_uow

router = APIRouter()


@router.get("/", response_model=SettingsOut, summary="Configuração atual do portal")
async def read_settings(
    repo: SettingsRepository = Depends(get_settings_repo),
    _user: User = Depends(get_current_active_user),
):
    uc = GetSettingsUseCase(repo, default_categories=get_settings().TICKET_CATEGORIES)
    return SettingsOut.model_validate(await uc.execute())


@router.put("/", response_model=SettingsOut, summary="Salvar configuração (admin)")
async def save_settings(
    payload: SettingsUpdate,
    repo: SettingsRepository = Depends(get_settings_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = UpdateSettingsUseCase(repo, uow)
    result = await uc.execute(UpdateSettingsCommand(**payload.model_dump()), actor=current_user)
    return SettingsOut.model_validate(result)
