"""
Taxonomia de erros do domínio.

Repositórios, use cases e o canal ao vivo levantam apenas estas exceções;
a camada de apresentação as converte em respostas HTTP.
"""

from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base de todos os erros de domínio."""


class ValidationError(DomainError, ValueError):
    """Entrada malformada ou ausente — culpa do chamador, nunca re-tentada."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(DomainError):
    """Ticket/usuário/artigo referenciado não existe."""

    def __init__(self, resource: str = "Recurso", resource_id: int | str = "") -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} não encontrado")


class ConflictError(DomainError):
    """Conflito de dados (duplicata, etc.)."""


class TransientStoreError(DomainError):
    """
    Falha transitória do record store (rede, lock, conexão).

    Leituras podem ser repetidas; escritas são devolvidas ao usuário.
    """


class ChannelClosedError(DomainError):
    """O canal de atualizações ao vivo terminou — recarregar manualmente."""


class HistoryAppendError(DomainError):
    """
    Falha ao gravar o evento de histórico de uma mutação já confirmada.

    Condição secundária (DEGRADED): a mutação principal continua válida.
    """

    def __init__(self, ticket_id: int, action: str, cause: Exception) -> None:
        self.ticket_id = ticket_id
        self.action = action
        self.cause = cause
        super().__init__(f"Histórico '{action}' do ticket {ticket_id} não foi gravado")


class AuthenticationError(DomainError):
    """Credenciais inválidas ou conta que não pode autenticar."""
