# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Credential resolver – decides which credential source is authoritative for a
session, in both directions.

Read direction (:meth:`CredentialResolver.resolve`), first match wins
---------------------------------------------------------------------
1. ``credential_id`` set and resolves to a credential of the same user
   → username and secret come from the credential; the other slot is empty.
2. ``credential_id`` set but dangling (deleted / other user)
   → warn, then fall back to the session's inline fields.
3. no ``credential_id``
   → the session's inline fields, decrypted when an iv is present.

Write direction (:meth:`seal_credential`, :meth:`seal_inline`)
--------------------------------------------------------------
Produces storage-ready ciphertext for the session row.  The row has a single
iv column, so every secret written to one row is encrypted under that iv.

Plaintext is never cached between calls.
"""

from dataclasses import dataclass
from typing import Optional

from core.crypto import CipherEngine
from core.errors import DanglingCredentialReference, NotFound
from core.logger import get_logger
from credentials.store import PASSWORD, PRIVATE_KEY, Credential, CredentialStore
from models.ssh_session import SshSession
from sessions.changes import UNSET, FieldChange, value_or

log = get_logger("resolver")


@dataclass(frozen=True)
class EffectiveCredentials:
    """Plaintext tuple actually used to open a connection."""

    username: str
    password: Optional[str] = None
    private_key: Optional[str] = None
    key_passphrase: Optional[str] = None
    # Set only when a live credential record supplied the values (rule 1).
    credential_id: Optional[int] = None


@dataclass(frozen=True)
class SealedSecrets:
    """Ciphertext + iv ready to be written to a session row."""

    password: Optional[str] = None
    private_key: Optional[str] = None
    iv: Optional[str] = None
    # Populated by seal_credential only: values mirrored from the credential.
    username: Optional[str] = None
    key_passphrase: Optional[str] = None

    @classmethod
    def of(cls, row: SshSession) -> "SealedSecrets":
        return cls(password=row.password, private_key=row.private_key, iv=row.iv)


class CredentialResolver:
    def __init__(self, cipher: CipherEngine, credentials: CredentialStore):
        self.cipher = cipher
        self.credentials = credentials

    # -- read direction ----------------------------------------------------

    def resolve(self, row: SshSession, user_id: int) -> EffectiveCredentials:
        """
        Effective credentials for *row*.

        A ``DecryptionError`` propagates, so a connection attempt fails fast
        instead of going out with garbage.  Metadata reads never come here;
        they only probe decryptability.
        """
        if row.credential_id is not None:
            credential = self.credentials.get_credential_by_id(row.credential_id, user_id)
            if credential is not None:
                return self._from_credential(credential)
            dangling = DanglingCredentialReference(row.id, row.credential_id)
            log.warning("%s – falling back to inline fields", dangling.message)

        return EffectiveCredentials(
            username=row.username,
            password=self._open(row, "password"),
            private_key=self._open(row, "private_key"),
            key_passphrase=row.key_passphrase,
        )

    @staticmethod
    def _from_credential(credential: Credential) -> EffectiveCredentials:
        if credential.type == PRIVATE_KEY:
            return EffectiveCredentials(
                username=credential.username,
                private_key=credential.private_key,
                key_passphrase=credential.passphrase,
                credential_id=credential.id,
            )
        return EffectiveCredentials(
            username=credential.username,
            password=credential.password,
            credential_id=credential.id,
        )

    def _open(self, row: SshSession, slot: str) -> Optional[str]:
        ciphertext = getattr(row, slot)
        if not ciphertext or not row.iv:
            return None
        return self.cipher.decrypt(ciphertext, row.iv)

    # -- write direction ---------------------------------------------------

    def lookup(self, credential_id: int, user_id: int) -> Credential:
        """A newly supplied reference must resolve; dangling ones are only tolerated at rest."""
        credential = self.credentials.get_credential_by_id(credential_id, user_id)
        if credential is None:
            raise NotFound("Referenced credential not found")
        return credential

    def seal_credential(self, credential: Credential) -> SealedSecrets:
        """
        Cache *credential*'s secret in the matching slot under a fresh iv and
        clear the other slot.
        """
        if credential.type == PRIVATE_KEY:
            ciphertext, iv = self.cipher.encrypt(credential.private_key or "")
            return SealedSecrets(
                private_key=ciphertext,
                iv=iv,
                username=credential.username,
                key_passphrase=credential.passphrase,
            )
        if credential.type == PASSWORD:
            ciphertext, iv = self.cipher.encrypt(credential.password or "")
            return SealedSecrets(password=ciphertext, iv=iv, username=credential.username)
        raise NotFound("Referenced credential not found")

    def seal_inline(
        self,
        password: FieldChange,
        private_key: FieldChange,
        current: SealedSecrets = SealedSecrets(),
    ) -> SealedSecrets:
        """
        Apply inline secret changes on top of *current*.

        * ``SetTo("secret")`` encrypts the value into its slot.
        * ``SetTo("")`` / ``CLEARED`` empties the slot.
        * ``UNSET`` keeps whatever *current* holds.

        A secret that stays in the row keeps its iv, and new material is
        sealed under it; otherwise the first fresh encryption's iv is reused
        for the second secret.  No secret left → no iv.
        """
        slots = {"password": current.password, "private_key": current.private_key}
        pending = []
        for slot, change in (("password", password), ("private_key", private_key)):
            if change is UNSET:
                continue
            slots[slot] = None
            plaintext = value_or(change)
            if plaintext:
                pending.append((slot, plaintext))

        iv = current.iv if any(slots.values()) else None
        for slot, plaintext in pending:
            if iv is None:
                slots[slot], iv = self.cipher.encrypt(plaintext)
            else:
                slots[slot] = self.cipher.encrypt_with_iv(plaintext, iv)

        if not any(slots.values()):
            iv = None
        return SealedSecrets(password=slots["password"], private_key=slots["private_key"], iv=iv)
