# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""SshSession ORM model – a saved SSH connection profile."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base

DEFAULT_SSH_PORT = 22


class SshSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Cascade delete: removing a user removes all their sessions atomically.
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    hostname = Column(String(255), nullable=False)
    port = Column(Integer, nullable=False, default=DEFAULT_SSH_PORT, server_default=str(DEFAULT_SSH_PORT))
    username = Column(String(255), nullable=False)
    # base64( ciphertext || 16-byte GCM tag ).  Never plaintext.
    password = Column(Text, nullable=True)
    private_key = Column(Text, nullable=True)
    # Stored in clear, as it always has been.
    key_passphrase = Column(Text, nullable=True)
    # base64( 12-byte nonce ), one per row, shared by whichever secret is set.
    # NULL when both secret columns are empty.
    iv = Column(String(64), nullable=True)
    # Plain integer, no FK: a deleted credential leaves the id dangling and
    # the resolver falls back to the inline cache above.
    credential_id = Column(Integer, nullable=True, index=True)
    console_snapshot = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
