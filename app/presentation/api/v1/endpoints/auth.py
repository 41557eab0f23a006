"""
Endpoints de Autenticação — /api/v1/auth

Register, Login (email + senha), Refresh Token, Change Password, Me.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.domain.systems.users.entity import User
from app.infrastructure.systems.users.repository import UserRepository
from app.application.shared.unit_of_work import UnitOfWork
from app.application.dtos.user_dtos import ChangePasswordCommand, LoginCommand, RegisterUserCommand
from app.application.systems.users.use_cases import (
    ChangePasswordUseCase,
    LoginUseCase,
    RegisterUserUseCase,
)
from app.presentation.api.v1.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    TokenOut,
    UserOut,
    UserRegister,
)
from app.presentation.api.v1.deps import (
    create_access_token,
    create_refresh_token,
    get_current_active_user,
    get_uow,
    get_user_repo,
    hash_password,
    user_id_from_token,
    verify_password,
)
from app.infrastructure.config import get_settings
from app.presentation.api.v1.limiter import InMemoryRateLimiter

router = APIRouter()
settings = get_settings()
login_limiter = InMemoryRateLimiter(requests=10, window=60)
register_limiter = InMemoryRateLimiter(requests=5, window=60)


@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar novo usuário",
    description="Cria uma conta com email e senha. Role sempre `user`.",
    dependencies=[Depends(register_limiter)],
)
async def register(
    payload: UserRegister,
    repo: UserRepository = Depends(get_user_repo),
    uow: UnitOfWork = Depends(get_uow),
):
    uc = RegisterUserUseCase(repo, uow, hash_password)
    result = await uc.execute(RegisterUserCommand(
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        department=payload.department,
        market=payload.market,
    ))
    return UserOut.model_validate(result)


@router.post(
    "/login",
    response_model=TokenOut,
    summary="Login — gera access + refresh token",
    dependencies=[Depends(login_limiter)],
)
async def login(
    payload: LoginRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    uc = LoginUseCase(repo, verify_password, create_access_token, create_refresh_token)
    result = await uc.execute(LoginCommand(email=payload.email, password=payload.password))
    return TokenOut(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post(
    "/refresh",
    response_model=TokenOut,
    summary="Renova access token usando refresh token",
)
async def refresh_token(
    payload: RefreshTokenRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    user_id = user_id_from_token(payload.refresh_token, expected_type="refresh")
    if not user_id:
        raise HTTPException(status_code=401, detail="Refresh token inválido ou expirado")

    # Role e status atuais, não os do momento do login
    user = await repo.get_by_id(user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Refresh token inválido ou expirado")

    claims = {"sub": str(user.id), "role": user.role.value}
    return TokenOut(
        access_token=create_access_token(data=claims),
        refresh_token=create_refresh_token(data=claims),
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post(
    "/change-password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Alterar senha do usuário autenticado",
)
async def change_password(
    payload: ChangePasswordRequest,
    repo: UserRepository = Depends(get_user_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = ChangePasswordUseCase(repo, uow, hash_password, verify_password)
    await uc.execute(
        ChangePasswordCommand(
            current_password=payload.current_password,
            new_password=payload.new_password,
        ),
        actor=current_user,
    )


@router.get(
    "/me",
    response_model=UserOut,
    summary="Perfil do usuário autenticado",
)
async def me(current_user: User = Depends(get_current_active_user)):
    return UserOut(
        id=current_user.id,
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role.value,
        department=current_user.department,
        market=current_user.market,
        status=current_user.status.value,
        created_at=current_user.created_at,
        updated_at=current_user.updated_at,
    )
