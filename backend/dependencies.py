# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
FastAPI dependencies that build the per-request services.

The cipher engine lives on ``app.state.cipher`` (created in main.py, keyed by
the startup hook); services get it passed in rather than reaching for a
global.  Tests swap any of these through ``app.dependency_overrides``.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from core.crypto import CipherEngine
from core.errors import EngineNotReady
from credentials.store import CredentialStore
from database import get_db
from sessions.connection import ConnectionTester, ParamikoConnectionTester
from sessions.service import SessionService
from tags.service import TagService


def get_cipher(request: Request) -> CipherEngine:
    cipher = getattr(request.app.state, "cipher", None)
    if cipher is None:
        raise EngineNotReady()
    return cipher


def get_tag_service(db: Session = Depends(get_db)) -> TagService:
    return TagService(db)


def get_credential_store(
    db: Session = Depends(get_db),
    cipher: CipherEngine = Depends(get_cipher),
) -> CredentialStore:
    return CredentialStore(db, cipher)


def get_session_service(
    db: Session = Depends(get_db),
    cipher: CipherEngine = Depends(get_cipher),
) -> SessionService:
    return SessionService(db, cipher)


def get_connection_tester() -> ConnectionTester:
    return ParamikoConnectionTester()
