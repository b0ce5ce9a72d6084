# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Session service – every read and write of a saved SSH session.

Invariants kept by every write
------------------------------
* One unit of work per operation: the row is loaded with a row lock, the
  credential decision is taken against that fresh row, the row and its tags
  are written, and everything commits together or not at all.
* Secrets are only ever stored as ciphertext; the cipher engine must be
  initialised before any write starts.
* ``iv`` is set iff at least one secret column is set.
* With a credential reference the secret columns are a cache encrypted from
  the referenced credential, holding only the slot of its type.

Only :meth:`SessionService.with_credentials_for_connection` returns plaintext.
Everything else returns a :class:`SessionView` with presence flags.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from core.crypto import CipherEngine
from core.errors import EngineNotReady, NotFound, ValidationError
from core.logger import get_logger
from credentials.store import CredentialStore
from database import unit_of_work
from models.ssh_session import DEFAULT_SSH_PORT, SshSession
from models.tag import SessionTag
from sessions.changes import (
    CLEARED,
    UNSET,
    SessionChanges,
    SessionFields,
    SetTo,
    is_supplied,
    value_or,
)
from sessions.connection import ConnectionProfile
from sessions.resolver import CredentialResolver, SealedSecrets
from sessions.schemas import SessionView
from sessions.validation import validate_changes, validate_create
from tags.schemas import TagRow
from tags.service import TagService

log = get_logger("sessions")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionService:
    def __init__(
        self,
        db: Session,
        cipher: CipherEngine,
        credentials: Optional[CredentialStore] = None,
        tags: Optional[TagService] = None,
    ):
        self.db = db
        self.cipher = cipher
        self.credentials = credentials or CredentialStore(db, cipher)
        self.tags = tags or TagService(db)
        self.resolver = CredentialResolver(cipher, self.credentials)

    # =====================================================================
    # Reads
    # =====================================================================

    def list_sessions(self, user_id: int, tag_id: Optional[int] = None) -> list[SessionView]:
        """All sessions of the user, most recently updated first."""
        q = self.db.query(SshSession).filter(SshSession.user_id == user_id)
        if tag_id is not None:
            if self.tags.get_tag(tag_id, user_id) is None:
                raise NotFound("Tag not found")
            q = q.join(SessionTag, SessionTag.session_id == SshSession.id).filter(
                SessionTag.tag_id == tag_id
            )
        rows = q.order_by(SshSession.updated_at.desc(), SshSession.id.desc()).all()
        tag_map = self.tags.get_tags_for_sessions([row.id for row in rows], user_id)
        return [self._view(row, tag_map.get(row.id, [])) for row in rows]

    def get_session(self, session_id: int, user_id: int) -> SessionView:
        row = self._owned(session_id, user_id)
        return self._view(row, self.tags.get_tags_for_session(row.id, user_id))

    def with_credentials_for_connection(self, session_id: int, user_id: int) -> ConnectionProfile:
        """
        Plaintext connection credentials, for the SSH connect / test path
        only.  A ``DecryptionError`` propagates so the connection attempt
        fails fast.
        """
        row = self._owned(session_id, user_id)
        effective = self.resolver.resolve(row, user_id)
        log.info(
            "Resolved connection credentials for session %s (source=%s)",
            row.id,
            "credential" if effective.credential_id is not None else "inline",
        )
        return ConnectionProfile(
            session_id=row.id,
            name=row.name,
            hostname=row.hostname,
            port=row.port,
            username=effective.username,
            password=effective.password,
            private_key=effective.private_key,
            key_passphrase=effective.key_passphrase,
        )

    # =====================================================================
    # Writes
    # =====================================================================

    def create(self, user_id: int, fields: SessionFields) -> SessionView:
        self._require_engine()
        validate_create(fields)

        with unit_of_work(self.db):
            username = (fields.username or "").strip()
            key_passphrase = fields.key_passphrase or None
            if fields.credential_id is not None:
                credential = self.resolver.lookup(fields.credential_id, user_id)
                sealed = self.resolver.seal_credential(credential)
                username = sealed.username
                key_passphrase = sealed.key_passphrase
            else:
                sealed = self.resolver.seal_inline(
                    SetTo(fields.password or ""),
                    SetTo(fields.private_key or ""),
                )

            row = SshSession(
                user_id=user_id,
                name=fields.name.strip(),
                hostname=fields.hostname.strip(),
                port=fields.port or DEFAULT_SSH_PORT,
                username=username,
                password=sealed.password,
                private_key=sealed.private_key,
                key_passphrase=key_passphrase,
                iv=sealed.iv,
                credential_id=fields.credential_id,
                console_snapshot=fields.console_snapshot,
                updated_at=_now(),
            )
            self.db.add(row)
            self.db.flush()

            if fields.tags is not None:
                self.tags.set_session_tags(row.id, user_id, fields.tags)

        log.info("Session %s created for user %s", row.id, user_id)
        return self.get_session(row.id, user_id)

    def update(self, session_id: int, user_id: int, changes: SessionChanges) -> SessionView:
        """Partial update; ``UNSET`` fields keep their stored value."""
        self._require_engine()
        validate_changes(changes)

        with unit_of_work(self.db):
            row = self._owned(session_id, user_id, lock=True)
            self._apply_plain_fields(row, changes)
            self._apply_credentials(row, user_id, changes)
            row.updated_at = _now()

            if is_supplied(changes.tags):
                self.tags.set_session_tags(row.id, user_id, value_or(changes.tags, []))

        log.info("Session %s updated for user %s", session_id, user_id)
        return self.get_session(session_id, user_id)

    def duplicate(self, session_id: int, user_id: int, new_name: Optional[str] = None) -> SessionView:
        """
        Copy a session through its *decrypted* credentials so the copy gets
        its own fresh iv instead of sharing the source's ciphertext.
        """
        self._require_engine()
        source = self._owned(session_id, user_id)
        effective = self.resolver.resolve(source, user_id)
        tag_ids = [tag.id for tag in self.tags.get_tags_for_session(source.id, user_id)]

        name = new_name.strip() if new_name and new_name.strip() else f"{source.name} (Copy)"
        copy = SessionFields(
            name=name,
            hostname=source.hostname,
            port=source.port,
            username=effective.username,
            password=effective.password,
            private_key=effective.private_key,
            key_passphrase=effective.key_passphrase,
            # Only a live reference is carried over; a dangling one would
            # make the copy fail, its inline values are used instead.
            credential_id=effective.credential_id,
            tags=tag_ids,
        )
        view = self.create(user_id, copy)
        log.info("Session %s duplicated as %s", session_id, view.id)
        return view

    def delete(self, session_id: int, user_id: int) -> None:
        """Delete the session and its tag memberships; tags themselves stay."""
        with unit_of_work(self.db):
            row = self._owned(session_id, user_id, lock=True)
            self.db.execute(delete(SessionTag).where(SessionTag.session_id == row.id))
            self.db.delete(row)
        log.info("Session %s deleted for user %s", session_id, user_id)

    def save_console_snapshot(self, session_id: int, user_id: int, snapshot: Optional[str]) -> None:
        if not snapshot:
            raise ValidationError("Console snapshot data is required")
        with unit_of_work(self.db):
            row = self._owned(session_id, user_id, lock=True)
            row.console_snapshot = snapshot
            row.updated_at = _now()

    # =====================================================================
    # Update precedence
    # =====================================================================

    @staticmethod
    def _apply_plain_fields(row: SshSession, changes: SessionChanges) -> None:
        if isinstance(changes.name, SetTo):
            row.name = changes.name.value.strip()
        if isinstance(changes.hostname, SetTo):
            row.hostname = changes.hostname.value.strip()
        if isinstance(changes.username, SetTo):
            row.username = changes.username.value.strip()
        if changes.port is CLEARED:
            row.port = DEFAULT_SSH_PORT
        elif isinstance(changes.port, SetTo):
            row.port = changes.port.value
        if is_supplied(changes.key_passphrase):
            row.key_passphrase = value_or(changes.key_passphrase) or None
        if is_supplied(changes.console_snapshot):
            row.console_snapshot = value_or(changes.console_snapshot)

    def _apply_credentials(self, row: SshSession, user_id: int, changes: SessionChanges) -> None:
        """
        Decide the credential source against the freshly locked row.

        1. credential_id supplied and different from the stored one:
           a. a new id   → cache the referenced credential
           b. null       → drop the cache, seal any inline secrets from scratch
        2. credential_id not supplied (or null on an unreferenced row) but
           inline secrets are → detach and seal them.  A cache derived from a
           previous reference is dropped first; a user-supplied secret is
           only cleared when explicitly sent empty.
        3. credential_id equal to the stored reference → secrets untouched.
        """
        requested = changes.credential_id
        stored = row.credential_id

        if requested is not UNSET and value_or(requested) != stored:
            new_id = value_or(requested)
            if new_id is None:
                self._detach(row, changes, SealedSecrets())
            else:
                credential = self.resolver.lookup(new_id, user_id)
                sealed = self.resolver.seal_credential(credential)
                row.credential_id = new_id
                row.username = sealed.username
                row.key_passphrase = sealed.key_passphrase
                self._store(row, sealed)
            return

        if not changes.touches_inline_secrets:
            return

        if stored is None:
            self._detach(row, changes, SealedSecrets.of(row))
        elif requested is UNSET:
            self._detach(row, changes, SealedSecrets())
        else:
            log.info(
                "Session %s keeps credential %s; inline secrets in the same request are ignored",
                row.id,
                stored,
            )

    def _detach(self, row: SshSession, changes: SessionChanges, current: SealedSecrets) -> None:
        if row.credential_id is not None and changes.key_passphrase is UNSET:
            # The cached passphrase came from the credential, not the user.
            row.key_passphrase = None
        row.credential_id = None
        self._store(row, self.resolver.seal_inline(changes.password, changes.private_key, current))

    @staticmethod
    def _store(row: SshSession, sealed: SealedSecrets) -> None:
        row.password = sealed.password
        row.private_key = sealed.private_key
        row.iv = sealed.iv

    # =====================================================================
    # Helpers
    # =====================================================================

    def _require_engine(self) -> None:
        if not self.cipher.ready:
            raise EngineNotReady()

    def _owned(self, session_id: int, user_id: int, lock: bool = False) -> SshSession:
        """
        Load a session scoped to its owner.  Another user's session is
        reported exactly like a missing one.
        """
        q = self.db.query(SshSession).filter(SshSession.id == session_id, SshSession.user_id == user_id)
        if lock:
            q = q.with_for_update()
        row = q.first()
        if row is None:
            raise NotFound("Session not found")
        return row

    def _secret_available(self, row: SshSession, slot: str) -> bool:
        ciphertext = getattr(row, slot)
        if not ciphertext or not self.cipher.ready:
            return False
        if self.cipher.can_decrypt(ciphertext, row.iv):
            return True
        log.warning("Session %s: stored %s is not readable with the current key", row.id, slot)
        return False

    def _view(self, row: SshSession, tags) -> SessionView:
        return SessionView(
            id=row.id,
            name=row.name,
            hostname=row.hostname,
            port=row.port,
            username=row.username,
            has_password=self._secret_available(row, "password"),
            has_private_key=self._secret_available(row, "private_key"),
            credential_id=row.credential_id,
            console_snapshot=row.console_snapshot,
            tags=[TagRow.model_validate(tag) for tag in tags],
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
