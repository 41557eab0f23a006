"""add timestamp and per-ticket ordering indexes

Revision ID: 0002_add_indexes
Revises: 0001_initial
Create Date: 2026-10-16
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers
revision: str = "0002_add_indexes"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # tickets: listagem por data de criação
    op.create_index(op.f("ix_tickets_created_at"), "tickets", ["created_at"], unique=False)

    # comentários e histórico: leitura por ticket em ordem cronológica
    op.create_index(
        "ix_ticket_comments_ticket_id_created_at", "ticket_comments", ["ticket_id", "created_at"], unique=False
    )
    op.create_index(
        "ix_ticket_history_ticket_id_created_at", "ticket_history", ["ticket_id", "created_at"], unique=False
    )

    # knowledge_articles
    op.create_index(op.f("ix_knowledge_articles_created_at"), "knowledge_articles", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_knowledge_articles_created_at"), table_name="knowledge_articles")
    op.drop_index("ix_ticket_history_ticket_id_created_at", table_name="ticket_history")
    op.drop_index("ix_ticket_comments_ticket_id_created_at", table_name="ticket_comments")
    op.drop_index(op.f("ix_tickets_created_at"), table_name="tickets")
