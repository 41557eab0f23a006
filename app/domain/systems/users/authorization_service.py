"""
Serviço de domínio para autorização (RBAC).

Centraliza regras de permissão — lógica pura de domínio, sem dependências externas.
"""

from __future__ import annotations
from typing import Optional

from app.domain.systems.users.entity import User, UserRole


class AuthorizationError(Exception):
    """Exceção de domínio para acesso negado."""
    pass


class AuthorizationService:
    """Regras RBAC centralizadas no domínio."""

    @staticmethod
    def ensure_can_manage_users(actor: User) -> None:
        if not actor.can_manage_users():
            raise AuthorizationError(
                f"Usuário {actor.email} (role={actor.role.value}) não pode gerenciar usuários"
            )

    @staticmethod
    def ensure_can_manage_tickets(actor: User) -> None:
        """Mudança de status e atribuição: apenas admin/support."""
        if not actor.can_manage_tickets():
            raise AuthorizationError(
                f"Usuário {actor.email} (role={actor.role.value}) não pode gerenciar tickets"
            )

    @staticmethod
    def ensure_owner_or_admin(actor: User, resource_owner_id: int) -> None:
        if actor.id != resource_owner_id and not actor.is_admin():
            raise AuthorizationError("Acesso negado: não é dono do recurso nem admin")

    @staticmethod
    def ensure_can_change_role(actor: User, target: User, new_role: UserRole) -> None:
        if not actor.is_admin():
            raise AuthorizationError("Apenas admins podem alterar roles")
        if target.id == actor.id and new_role != UserRole.ADMIN:
            raise AuthorizationError("Admin não pode rebaixar a si mesmo")

    @staticmethod
    def is_ticket_participant(
        actor: User, ticket_created_by: Optional[int], ticket_assigned_to: Optional[int]
    ) -> bool:
        """Criador, responsável atribuído ou equipe de suporte."""
        if actor.is_staff() or actor.id == ticket_created_by:
            return True
        return ticket_assigned_to is not None and actor.id == ticket_assigned_to

    @staticmethod
    def ensure_can_access_ticket(
        actor: User, ticket_created_by: Optional[int], ticket_assigned_to: Optional[int]
    ) -> None:
        if not AuthorizationService.is_ticket_participant(actor, ticket_created_by, ticket_assigned_to):
            raise AuthorizationError("Acesso negado a este ticket")

    @staticmethod
    def ensure_can_comment_ticket(
        actor: User, ticket_created_by: Optional[int], ticket_assigned_to: Optional[int]
    ) -> None:
        if not AuthorizationService.is_ticket_participant(actor, ticket_created_by, ticket_assigned_to):
            raise AuthorizationError(
                "Apenas o criador, o responsável atribuído ou a equipe de suporte podem comentar"
            )

    @staticmethod
    def ensure_can_edit_knowledge(actor: User) -> None:
        if not actor.is_staff():
            raise AuthorizationError("Apenas admin/support podem editar a base de conhecimento")

    @staticmethod
    def ensure_can_manage_settings(actor: User) -> None:
        if not actor.is_admin():
            raise AuthorizationError("Apenas administradores podem alterar a configuração do portal")
