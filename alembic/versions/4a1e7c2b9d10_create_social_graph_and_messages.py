"""create users, social graph and messages

Revision ID: 4a1e7c2b9d10
Revises:
Create Date: 2026-10-18 09:12:44.501233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4a1e7c2b9d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _user_fk(name: str, *, primary_key: bool = False, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=primary_key,
        nullable=nullable,
    )


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(120), nullable=False),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "friendships",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        _user_fk("user_low_id"),
        _user_fk("user_high_id"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_low_id", "user_high_id", name="uq_friendships_pair"),
        sa.CheckConstraint("user_low_id <> user_high_id", name="ck_friendships_not_self"),
    )
    op.create_index("ix_friendships_user_low_id", "friendships", ["user_low_id"])
    op.create_index("ix_friendships_user_high_id", "friendships", ["user_high_id"])

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        _user_fk("from_user_id"),
        _user_fk("to_user_id"),
        sa.Column("user_low_id", sa.UUID(as_uuid=True), nullable=False),
        sa.Column("user_high_id", sa.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_low_id", "user_high_id", name="uq_friend_requests_pair"),
        sa.CheckConstraint("from_user_id <> to_user_id", name="ck_friend_requests_not_self"),
    )
    op.create_index("ix_friend_requests_from_user_id", "friend_requests", ["from_user_id"])
    op.create_index("ix_friend_requests_to_user_id", "friend_requests", ["to_user_id"])

    op.create_table(
        "pinned_chats",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        _user_fk("user_id"),
        _user_fk("target_user_id"),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "slot", name="uq_pinned_chats_user_slot"),
        sa.UniqueConstraint("user_id", "target_user_id", name="uq_pinned_chats_user_target"),
        sa.CheckConstraint("slot >= 0 AND slot < 2", name="ck_pinned_chats_slot"),
    )
    op.create_index("ix_pinned_chats_user_id", "pinned_chats", ["user_id"])

    op.create_table(
        "last_interactions",
        _user_fk("user_low_id", primary_key=True),
        _user_fk("user_high_id", primary_key=True),
        sa.Column("last_interaction_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("user_low_id <> user_high_id", name="ck_last_interactions_not_self"),
    )
    op.create_index("ix_last_interactions_user_high_id", "last_interactions", ["user_high_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        _user_fk("user_id"),
        _user_fk("from_user_id"),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("read", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("kind IN ('friend_request','friend_accepted')", name="ck_notifications_kind"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "read"])

    op.create_table(
        "messages",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        _user_fk("sender_id"),
        _user_fk("receiver_id"),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("attachment_url", sa.String(1000), nullable=True),
        sa.Column("attachment_type", sa.String(120), nullable=True),
        sa.Column("attachment_name", sa.String(255), nullable=True),
        sa.Column("attachment_size", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_receiver_id", "messages", ["receiver_id"])
    op.create_index("ix_messages_pair_created", "messages", ["sender_id", "receiver_id", "created_at"])


def downgrade():
    op.drop_table("messages")
    op.drop_table("notifications")
    op.drop_table("last_interactions")
    op.drop_table("pinned_chats")
    op.drop_table("friend_requests")
    op.drop_table("friendships")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
