# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""CredentialRecord ORM model – a reusable, user-owned secret bundle."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base

CREDENTIAL_TYPES = ("password", "private_key")


class CredentialRecord(Base):
    __tablename__ = "credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    type = Column(String(32), nullable=False)  # "password" or "private_key"
    username = Column(String(255), nullable=False)
    # base64( ciphertext || 16-byte GCM tag ).  The secret of the record type
    # is sealed under `iv`; the passphrase has its own nonce.
    password = Column(Text, nullable=True)
    private_key = Column(Text, nullable=True)
    passphrase = Column(Text, nullable=True)
    iv = Column(String(64), nullable=False)
    passphrase_iv = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
