# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Typed errors raised by the session / credential / tag services.

Every error carries a machine-readable ``kind`` and a human-readable
message.  ``main.py`` maps them onto HTTP status codes in one place, so the
services never import FastAPI.
"""


class SessionVaultError(Exception):
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(SessionVaultError):
    """The object does not exist *or* belongs to another user.

    The two cases are deliberately indistinguishable to the caller.
    """

    kind = "not_found"


class ValidationError(SessionVaultError):
    """One or more field violations, all collected in a single pass."""

    kind = "validation"

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class ConflictError(SessionVaultError):
    kind = "conflict"


class DecryptionError(SessionVaultError):
    """Ciphertext cannot be opened with the current key / iv."""

    kind = "decryption"


class EngineNotReady(SessionVaultError):
    """The cipher engine was used before its key was loaded."""

    kind = "engine_not_ready"

    def __init__(self, message: str = "Encryption engine is not initialised"):
        super().__init__(message)


class DanglingCredentialReference(SessionVaultError):
    """A session points at a credential that no longer resolves.

    Never raised to callers: the resolver logs it and falls back to the
    session's inline fields.
    """

    kind = "dangling_credential"

    def __init__(self, session_id: int, credential_id: int):
        self.session_id = session_id
        self.credential_id = credential_id
        super().__init__(
            f"Credential {credential_id} referenced by session {session_id} no longer resolves"
        )
