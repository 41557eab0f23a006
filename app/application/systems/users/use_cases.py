"""
Use Cases de Users — camada de Aplicação.

Orquestram entidades de domínio, repositórios e eventos.
Toda lógica de negócio vive no domínio; aqui apenas coordenamos.
"""

from __future__ import annotations

from typing import Callable, Optional

from app.domain.shared.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.domain.shared.value_objects import Email
from app.domain.systems.users.entity import User, UserRole, UserStatus
from app.domain.systems.users.repository import IUserRepository
from app.domain.systems.users.authorization_service import AuthorizationService
from app.application.dtos.user_dtos import (
    ChangePasswordCommand,
    CreateUserCommand,
    GetUserByIdQuery,
    ListUsersQuery,
    LoginCommand,
    RegisterUserCommand,
    TokenResult,
    UpdateUserCommand,
    UserResult,
)
from app.application.shared.unit_of_work import UnitOfWork

MIN_PASSWORD_LENGTH = 8


def _to_result(user: User) -> UserResult:
    return UserResult(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role.value,
        department=user.department,
        market=user.market,
        status=user.status.value,
        created_at=user.created_at.isoformat() if user.created_at else None,
        updated_at=user.updated_at.isoformat() if user.updated_at else None,
    )


def _check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres", field="password"
        )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


class RegisterUserUseCase:
    """Auto-cadastro: sempre role `user`."""

    def __init__(self, repo: IUserRepository, uow: UnitOfWork, hash_fn: Callable[[str], str]) -> None:
        self._repo = repo
        self._uow = uow
        self._hash_fn = hash_fn

    async def execute(self, cmd: RegisterUserCommand) -> UserResult:
        email = Email(cmd.email).address
        _check_password(cmd.password)
        if await self._repo.get_by_email(email):
            raise ConflictError("Email já cadastrado")

        user = User(
            email=email,
            full_name=_clean(cmd.full_name),
            hashed_password=self._hash_fn(cmd.password),
            role=UserRole.USER,
            department=_clean(cmd.department),
            market=_clean(cmd.market),
        )

        created = await self._repo.create(user)
        created.record_creation()
        self._uow.collect_events_from(created)
        await self._uow.commit()
        return _to_result(created)


class CreateUserUseCase:
    """Criação de usuário pelo admin (role e status definidos)."""

    def __init__(self, repo: IUserRepository, uow: UnitOfWork, hash_fn: Callable[[str], str]) -> None:
        self._repo = repo
        self._uow = uow
        self._hash_fn = hash_fn

    async def execute(self, cmd: CreateUserCommand, actor: User) -> UserResult:
        AuthorizationService.ensure_can_manage_users(actor)
        email = Email(cmd.email).address
        _check_password(cmd.password)
        role = UserRole.parse(cmd.role)
        status = UserStatus.parse(cmd.status)
        if await self._repo.get_by_email(email):
            raise ConflictError("Email já cadastrado")

        user = User(
            email=email,
            full_name=_clean(cmd.full_name),
            hashed_password=self._hash_fn(cmd.password),
            role=role,
            department=_clean(cmd.department),
            market=_clean(cmd.market),
            status=status,
        )

        created = await self._repo.create(user)
        created.record_creation(created_by=actor.id)
        self._uow.collect_events_from(created)
        await self._uow.commit()
        return _to_result(created)


class LoginUseCase:
    """Autentica por email e gera access + refresh token."""

    def __init__(self, repo: IUserRepository, verify_fn, token_fn, refresh_fn=None) -> None:
        self._repo = repo
        self._verify_fn = verify_fn
        self._token_fn = token_fn
        self._refresh_fn = refresh_fn

    async def execute(self, cmd: LoginCommand) -> TokenResult:
        user = await self._repo.get_by_email(cmd.email)
        if not user or not self._verify_fn(cmd.password, user.hashed_password):
            raise AuthenticationError("Credenciais inválidas")
        if not user.is_active:
            raise AuthenticationError(f"Usuário {user.status.value}: acesso não liberado")

        claims = {"sub": str(user.id), "role": user.role.value}
        refresh = self._refresh_fn(data=claims) if self._refresh_fn else None
        return TokenResult(access_token=self._token_fn(data=claims), refresh_token=refresh)


class GetUserUseCase:
    """Busca usuário por ID (próprio usuário ou admin)."""

    def __init__(self, repo: IUserRepository) -> None:
        self._repo = repo

    async def execute(self, query: GetUserByIdQuery, actor: User) -> UserResult:
        AuthorizationService.ensure_owner_or_admin(actor, query.user_id)
        user = await self._repo.get_by_id(query.user_id)
        if not user:
            raise NotFoundError("Usuário", query.user_id)
        return _to_result(user)


class ListUsersUseCase:
    """Lista usuários com filtros (apenas admin)."""

    def __init__(self, repo: IUserRepository) -> None:
        self._repo = repo

    async def execute(self, query: ListUsersQuery, actor: User) -> list[UserResult]:
        AuthorizationService.ensure_can_manage_users(actor)
        status = UserStatus.parse(query.status) if query.status else None
        users = await self._repo.list_filtered(
            search=_clean(query.search),
            market=_clean(query.market),
            status=status,
        )
        return [_to_result(u) for u in users]


class UpdateUserUseCase:
    """
    Atualiza perfil, role e status.

    O próprio usuário pode alterar nome, departamento e mercado; role e
    status exigem admin.
    """

    def __init__(self, repo: IUserRepository, uow: UnitOfWork) -> None:
        self._repo = repo
        self._uow = uow

    async def execute(self, cmd: UpdateUserCommand, actor: User) -> UserResult:
        AuthorizationService.ensure_owner_or_admin(actor, cmd.user_id)
        user = await self._repo.get_by_id(cmd.user_id)
        if not user:
            raise NotFoundError("Usuário", cmd.user_id)

        changed: dict = {}

        for name in ("full_name", "department", "market"):
            value = getattr(cmd, name)
            if value is None:
                continue
            value = _clean(value)
            if value != getattr(user, name):
                changed[name] = {"old": getattr(user, name), "new": value}
                setattr(user, name, value)

        if cmd.role is not None:
            new_role = UserRole.parse(cmd.role)
            AuthorizationService.ensure_can_change_role(actor, user, new_role)
            if new_role != user.role:
                changed["role"] = {"old": user.role.value, "new": new_role.value}
                user.change_role(new_role, performed_by=actor.id)

        if cmd.status is not None:
            new_status = UserStatus.parse(cmd.status)
            AuthorizationService.ensure_can_manage_users(actor)
            if new_status != user.status:
                if user.id == actor.id:
                    raise ValidationError("Admin não pode alterar o próprio status", field="status")
                changed["status"] = {"old": user.status.value, "new": new_status.value}
                user.change_status(new_status, performed_by=actor.id)

        if not changed:
            return _to_result(user)

        user.record_update(changed, performed_by=actor.id)
        updated = await self._repo.update(user)
        self._uow.collect_events_from(user)
        await self._uow.commit()
        return _to_result(updated)


class ChangePasswordUseCase:
    def __init__(self, repo: IUserRepository, uow: UnitOfWork, hash_fn, verify_fn) -> None:
        self._repo = repo
        self._uow = uow
        self._hash_fn = hash_fn
        self._verify_fn = verify_fn

    async def execute(self, cmd: ChangePasswordCommand, actor: User) -> None:
        if not self._verify_fn(cmd.current_password, actor.hashed_password):
            raise ValidationError("Senha atual incorreta", field="current_password")
        _check_password(cmd.new_password)
        actor.hashed_password = self._hash_fn(cmd.new_password)
        await self._repo.update(actor)
        await self._uow.commit()
