"""Initial schema – users, credentials, sessions, tags, session_tags

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _owner():
    return sa.Column(
        "user_id",
        sa.Integer(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(255), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
    )

    # -- credentials ----------------------------------------------------
    op.create_table(
        "credentials",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        # base64( ciphertext || 16-byte GCM tag ) – never plaintext
        sa.Column("password", sa.Text(), nullable=True),
        sa.Column("private_key", sa.Text(), nullable=True),
        sa.Column("passphrase", sa.Text(), nullable=True),
        # base64( 12-byte AES-GCM nonce )
        sa.Column("iv", sa.String(64), nullable=False),
        sa.Column("passphrase_iv", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_credentials_user_id", "credentials", ["user_id"])

    # -- sessions -------------------------------------------------------
    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("hostname", sa.String(255), nullable=False),
        sa.Column("port", sa.Integer(), nullable=False, server_default="22"),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password", sa.Text(), nullable=True),
        sa.Column("private_key", sa.Text(), nullable=True),
        sa.Column("key_passphrase", sa.Text(), nullable=True),
        sa.Column("iv", sa.String(64), nullable=True),
        # No FK: a deleted credential leaves a dangling id behind.
        sa.Column("credential_id", sa.Integer(), nullable=True),
        sa.Column("console_snapshot", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_sessions_user_id", "sessions", ["user_id"])
    op.create_index("idx_sessions_credential_id", "sessions", ["credential_id"])

    # -- tags -----------------------------------------------------------
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
    )
    op.create_index("idx_tags_user_id", "tags", ["user_id"])

    # -- session_tags ---------------------------------------------------
    op.create_table(
        "session_tags",
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "tag_id",
            sa.Integer(),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_session_tags_tag_id", "session_tags", ["tag_id"])


def downgrade() -> None:
    op.drop_index("idx_session_tags_tag_id", table_name="session_tags")
    op.drop_table("session_tags")
    op.drop_index("idx_tags_user_id", table_name="tags")
    op.drop_table("tags")
    op.drop_index("idx_sessions_credential_id", table_name="sessions")
    op.drop_index("idx_sessions_user_id", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("idx_credentials_user_id", table_name="credentials")
    op.drop_table("credentials")
    op.drop_table("users")
