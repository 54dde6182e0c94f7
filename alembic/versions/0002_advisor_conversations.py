"""Advisor conversations

Revision ID: 0002_advisor_conversations
Revises: 0001_initial_schema
Create Date: 2026-10-17

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_advisor_conversations"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def _has_table(insp: sa.Inspector, table: str) -> bool:
    return table in insp.get_table_names()


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Databases created from 0001 after the models gained these tables already have them.
    insp = sa.inspect(op.get_bind())

    if not _has_table(insp, "conversations"):
        op.create_table(
            "conversations",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column(
                "phase_id", sa.Integer(), sa.ForeignKey("career_phases.id", ondelete="SET NULL"), nullable=True
            ),
            *_timestamps(),
        )
        op.create_index("ix_conversations_user_id", "conversations", ["user_id"], unique=False)

    if not _has_table(insp, "conversation_messages"):
        op.create_table(
            "conversation_messages",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "conversation_id",
                sa.Integer(),
                sa.ForeignKey("conversations.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("role", sa.String(length=20), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            *_timestamps(),
        )
        op.create_index(
            "ix_conversation_messages_conversation_id", "conversation_messages", ["conversation_id"], unique=False
        )


def downgrade() -> None:
    insp = sa.inspect(op.get_bind())
    if _has_table(insp, "conversation_messages"):
        op.drop_table("conversation_messages")
    if _has_table(insp, "conversations"):
        op.drop_table("conversations")
