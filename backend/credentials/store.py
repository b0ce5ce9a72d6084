# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Credential store – reusable, user-scoped credential records.

The session services only consume :meth:`CredentialStore.get_credential_by_id`,
which hands back a plaintext :class:`Credential`.  Secrets are encrypted at
rest with the same cipher engine the sessions use.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from core.crypto import CipherEngine
from core.errors import NotFound, ValidationError
from core.logger import get_logger
from database import unit_of_work
from models.credential import CREDENTIAL_TYPES, CredentialRecord

log = get_logger("credentials")

PASSWORD = "password"
PRIVATE_KEY = "private_key"


@dataclass(frozen=True)
class Credential:
    """Decrypted view of a credential record."""

    id: int
    user_id: int
    name: str
    type: str
    username: str
    password: Optional[str] = None
    private_key: Optional[str] = None
    passphrase: Optional[str] = None


class CredentialStore:
    def __init__(self, db: Session, cipher: CipherEngine):
        self.db = db
        self.cipher = cipher

    # -- read contract -----------------------------------------------------

    def get_credential_by_id(self, credential_id: int, user_id: int) -> Optional[Credential]:
        """Return the decrypted credential, or None if absent / not owned."""
        record = self._owned(credential_id, user_id)
        if record is None:
            return None
        return Credential(
            id=record.id,
            user_id=record.user_id,
            name=record.name,
            type=record.type,
            username=record.username,
            password=self._open(record.password, record.iv),
            private_key=self._open(record.private_key, record.iv),
            passphrase=self._open(record.passphrase, record.passphrase_iv),
        )

    # -- management --------------------------------------------------------

    def list_credentials(self, user_id: int) -> list[CredentialRecord]:
        return (
            self.db.query(CredentialRecord)
            .filter(CredentialRecord.user_id == user_id)
            .order_by(CredentialRecord.name.asc(), CredentialRecord.id.asc())
            .all()
        )

    def create_credential(
        self,
        user_id: int,
        name: str,
        type: str,
        username: str,
        password: Optional[str] = None,
        private_key: Optional[str] = None,
        passphrase: Optional[str] = None,
    ) -> CredentialRecord:
        errors = []
        if not name or not name.strip():
            errors.append("Credential name is required")
        if not username or not username.strip():
            errors.append("Username is required")
        if type not in CREDENTIAL_TYPES:
            errors.append("Credential type must be 'password' or 'private_key'")
        elif type == PASSWORD and not password:
            errors.append("Password is required for a password credential")
        elif type == PRIVATE_KEY and not private_key:
            errors.append("Private key is required for a private_key credential")
        if errors:
            raise ValidationError(errors)

        # One nonce per ciphertext, never shared between secrets.
        secret = password if type == PASSWORD else private_key
        sealed_secret, iv = self.cipher.encrypt(secret)
        sealed_passphrase = passphrase_iv = None
        if type == PRIVATE_KEY and passphrase:
            sealed_passphrase, passphrase_iv = self.cipher.encrypt(passphrase)

        record = CredentialRecord(
            user_id=user_id,
            name=name.strip(),
            type=type,
            username=username.strip(),
            password=sealed_secret if type == PASSWORD else None,
            private_key=sealed_secret if type == PRIVATE_KEY else None,
            passphrase=sealed_passphrase,
            iv=iv,
            passphrase_iv=passphrase_iv,
        )
        with unit_of_work(self.db):
            self.db.add(record)
        self.db.refresh(record)
        log.info("Credential %s created for user %s (type=%s)", record.id, user_id, type)
        return record

    def delete_credential(self, credential_id: int, user_id: int) -> None:
        """
        Remove the record.  Sessions still pointing at it keep the id and
        degrade to their inline cache on the next resolution.
        """
        record = self._owned(credential_id, user_id)
        if record is None:
            raise NotFound("Credential not found")
        with unit_of_work(self.db):
            self.db.delete(record)
        log.info("Credential %s deleted for user %s", credential_id, user_id)

    # -- helpers -----------------------------------------------------------

    def _owned(self, credential_id: int, user_id: int) -> Optional[CredentialRecord]:
        return (
            self.db.query(CredentialRecord)
            .filter(CredentialRecord.id == credential_id, CredentialRecord.user_id == user_id)
            .first()
        )

    def _open(self, ciphertext: Optional[str], iv: Optional[str]) -> Optional[str]:
        if not ciphertext or not iv:
            return None
        return self.cipher.decrypt(ciphertext, iv)
