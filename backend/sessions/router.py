# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Session endpoints – CRUD for saved SSH sessions, duplication, console
snapshots, tag assignment and the connection test.

Security invariants enforced by every handler
---------------------------------------------
* JWT is required on every endpoint (via ``get_current_user``).
* Every lookup is scoped to ``current_user.id``; another user's session is
  answered with 404, exactly like a missing one.
* No response ever contains a password, private key or ciphertext.  Only
  ``POST /sessions/{id}/test`` touches plaintext, and it never returns it.

Service errors (not found, validation, …) are turned into HTTP responses by
the exception handler registered in main.py.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from core.security import get_current_user
from database import get_db, unit_of_work
from dependencies import get_connection_tester, get_session_service, get_tag_service
from models.user import User
from sessions.connection import ConnectionTester
from sessions.schemas import (
    ConnectionTestResponse,
    SessionCreate,
    SessionDuplicate,
    SessionListResponse,
    SessionTagsRequest,
    SessionUpdate,
    SessionView,
    SnapshotRequest,
)
from sessions.service import SessionService
from tags.schemas import TagRow
from tags.service import TagService

router = APIRouter(prefix="/sessions", tags=["sessions"])


# ---------------------------------------------------------------------------
# GET /sessions  – list the current user's sessions
# ---------------------------------------------------------------------------


@router.get("", response_model=SessionListResponse)
def list_sessions(
    tag_id: Optional[int] = Query(None, gt=0, description="Only sessions carrying this tag"),
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """Newest-updated first.  Secrets are reported as presence flags only."""
    return SessionListResponse(sessions=service.list_sessions(current_user.id, tag_id=tag_id))


# ---------------------------------------------------------------------------
# POST /sessions  – create a new session
# ---------------------------------------------------------------------------


@router.post("", response_model=SessionView, status_code=status.HTTP_201_CREATED)
def create_session(
    body: SessionCreate,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """
    Either ``credential_id`` or inline ``password`` / ``private_key``.  The
    server encrypts before persisting.
    """
    return service.create(current_user.id, body.to_fields())


# ---------------------------------------------------------------------------
# GET /sessions/{id}  – one session (metadata only)
# ---------------------------------------------------------------------------


@router.get("/{session_id}", response_model=SessionView)
def get_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    return service.get_session(session_id, current_user.id)


# ---------------------------------------------------------------------------
# PUT /sessions/{id}  – partial update
# ---------------------------------------------------------------------------


@router.put("/{session_id}", response_model=SessionView)
def update_session(
    session_id: int,
    body: SessionUpdate,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """
    Only keys present in the body are applied; an explicit ``null`` clears.
    Sending ``password`` / ``private_key`` without ``credential_id`` detaches
    the session from its credential.
    """
    return service.update(session_id, current_user.id, body.to_changes())


# ---------------------------------------------------------------------------
# DELETE /sessions/{id}
# ---------------------------------------------------------------------------


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """Tag memberships go with the session; the tags themselves stay."""
    service.delete(session_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# POST /sessions/{id}/duplicate
# ---------------------------------------------------------------------------


@router.post("/{session_id}/duplicate", response_model=SessionView, status_code=status.HTTP_201_CREATED)
def duplicate_session(
    session_id: int,
    body: Optional[SessionDuplicate] = None,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """Name defaults to ``"<original> (Copy)"``."""
    new_name = body.name if body else None
    return service.duplicate(session_id, current_user.id, new_name)


# ---------------------------------------------------------------------------
# POST /sessions/{id}/snapshot  – store the terminal scroll-back
# ---------------------------------------------------------------------------


@router.post("/{session_id}/snapshot")
def save_snapshot(
    session_id: int,
    body: SnapshotRequest,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    service.save_console_snapshot(session_id, current_user.id, body.snapshot)
    return {"detail": "Console snapshot saved successfully"}


# ---------------------------------------------------------------------------
# PUT /sessions/{id}/tags  – replace the tag set
# ---------------------------------------------------------------------------


@router.put("/{session_id}/tags", response_model=list[TagRow])
def set_session_tags(
    session_id: int,
    body: SessionTagsRequest,
    current_user: User = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
    db: Session = Depends(get_db),
):
    """All-or-nothing: one unknown or foreign tag id rejects the whole set."""
    with unit_of_work(db):
        result = tags.set_session_tags(session_id, current_user.id, body.tags or [])
        rows = [TagRow.model_validate(tag) for tag in result]
    return rows


# ---------------------------------------------------------------------------
# POST /sessions/{id}/test  – try an SSH handshake with the stored credentials
# ---------------------------------------------------------------------------


@router.post("/{session_id}/test", response_model=ConnectionTestResponse)
def test_connection(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
    tester: ConnectionTester = Depends(get_connection_tester),
):
    """
    The plaintext credentials exist only for the duration of this call.
    A handshake failure is a normal result (``success: false``), not an error.
    """
    profile = service.with_credentials_for_connection(session_id, current_user.id)
    result = tester.test(profile)
    return ConnectionTestResponse(
        hostname=profile.hostname,
        port=profile.port,
        username=profile.username,
        success=result.success,
        message=result.message,
    )
