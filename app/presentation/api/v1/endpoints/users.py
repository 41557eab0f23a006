"""
Endpoints de gestão de Users — /api/v1/users

Listagem com filtros, criação e edição pelo admin; o próprio usuário pode
editar nome, departamento e mercado. Auth fica em /api/v1/auth.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.domain.systems.users.entity import User
from app.infrastructure.systems.users.repository import UserRepository
from app.application.shared.unit_of_work import UnitOfWork
from app.application.dtos.user_dtos import (
    CreateUserCommand,
    GetUserByIdQuery,
    ListUsersQuery,
    UpdateUserCommand,
)
from app.application.systems.users.use_cases import (
    CreateUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    UpdateUserUseCase,
)
from app.presentation.api.v1.schemas import UserCreate, UserOut, UserUpdate
from app.presentation.api.v1.deps import (
    get_current_active_user,
    get_uow,
    get_user_repo,
    hash_password,
    require_roles,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[UserOut],
    summary="Listar usuários (admin)",
    description="Filtros opcionais: search (nome/email), market, status.",
)
async def list_users(
    search: Optional[str] = Query(default=None, max_length=255),
    market: Optional[str] = Query(default=None, max_length=100),
    user_status: Optional[str] = Query(default=None, alias="status"),
    repo: UserRepository = Depends(get_user_repo),
    current_user: User = Depends(require_roles("admin")),
):
    uc = ListUsersUseCase(repo)
    results = await uc.execute(
        ListUsersQuery(search=search, market=market, status=user_status),
        actor=current_user,
    )
    return [UserOut.model_validate(r) for r in results]


@router.post(
    "/",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Criar usuário (admin)",
)
async def create_user(
    payload: UserCreate,
    repo: UserRepository = Depends(get_user_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(require_roles("admin")),
):
    uc = CreateUserUseCase(repo, uow, hash_password)
    result = await uc.execute(CreateUserCommand(**payload.model_dump()), actor=current_user)
    return UserOut.model_validate(result)


@router.get(
    "/{user_id}",
    response_model=UserOut,
    summary="Buscar usuário por ID (próprio usuário ou admin)",
)
async def get_user(
    user_id: int,
    repo: UserRepository = Depends(get_user_repo),
    current_user: User = Depends(get_current_active_user),
):
    result = await GetUserUseCase(repo).execute(GetUserByIdQuery(user_id=user_id), actor=current_user)
    return UserOut.model_validate(result)


@router.patch(
    "/{user_id}",
    response_model=UserOut,
    summary="Atualizar usuário",
    description="Perfil: próprio usuário ou admin. Role e status: apenas admin.",
)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    repo: UserRepository = Depends(get_user_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = UpdateUserUseCase(repo, uow)
    result = await uc.execute(
        UpdateUserCommand(user_id=user_id, **payload.model_dump(exclude_unset=True)),
        actor=current_user,
    )
    return UserOut.model_validate(result)
