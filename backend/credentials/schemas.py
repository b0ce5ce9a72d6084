# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the credential endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------
# Secrets arrive in plaintext and are encrypted server-side before they are
# persisted.  They are never echoed back.


class CredentialCreate(BaseModel):
    name: Optional[str] = None
    type: str = "password"  # "password" or "private_key"
    username: Optional[str] = None
    password: Optional[str] = None
    private_key: Optional[str] = None
    passphrase: Optional[str] = None


# -- Responses -------------------------------------------------------------


class CredentialRow(BaseModel):
    id: int
    name: str
    type: str
    username: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CredentialListResponse(BaseModel):
    credentials: List[CredentialRow]
