# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the session endpoints."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel

from sessions.changes import SessionChanges, SessionFields
from tags.schemas import TagRow


# -- Requests --------------------------------------------------------------
# Every field is optional at this layer, and the validated ones are untyped,
# so that missing or malformed values are reported together by the session
# validator instead of one by one.
# Either credential_id or inline secrets (password / private_key) are sent;
# the server encrypts inline secrets before persisting.


class _SessionPayload(BaseModel):
    name: Any = None
    hostname: Any = None
    port: Any = None
    username: Any = None
    password: Optional[str] = None
    private_key: Optional[str] = None
    key_passphrase: Optional[str] = None
    credential_id: Any = None
    console_snapshot: Optional[str] = None
    tags: Any = None


class SessionCreate(_SessionPayload):
    def to_fields(self) -> SessionFields:
        data = self.model_dump()
        # Omitted tags → no tag sync at all; explicit null → empty set.
        if "tags" in self.model_fields_set:
            data["tags"] = data["tags"] or []
        else:
            data["tags"] = None
        return SessionFields(**data)


class SessionUpdate(_SessionPayload):
    """Partial update: only keys present in the JSON body are applied."""

    def to_changes(self) -> SessionChanges:
        return SessionChanges.from_payload(self.model_dump(exclude_unset=True))


class SessionDuplicate(BaseModel):
    name: Optional[str] = None


class SnapshotRequest(BaseModel):
    snapshot: Optional[str] = None


class SessionTagsRequest(BaseModel):
    tags: Any = None


# -- Responses -------------------------------------------------------------
# Secrets are never part of a response: only presence flags are exposed.


class SessionView(BaseModel):
    id: int
    name: str
    hostname: str
    port: int
    username: str
    has_password: bool
    has_private_key: bool
    credential_id: Optional[int] = None
    console_snapshot: Optional[str] = None
    tags: List[TagRow] = []
    created_at: datetime
    updated_at: datetime


class SessionListResponse(BaseModel):
    sessions: List[SessionView]


class ConnectionTestResponse(BaseModel):
    hostname: str
    port: int
    username: str
    success: bool
    message: str
