# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Credential endpoints – reusable username + password / private-key bundles
that sessions can reference by id.

Secrets go in, never come out: responses carry metadata only.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from core.security import get_current_user
from credentials.schemas import CredentialCreate, CredentialListResponse, CredentialRow
from credentials.store import CredentialStore
from dependencies import get_credential_store
from models.user import User

router = APIRouter(prefix="/credentials", tags=["credentials"])


# ---------------------------------------------------------------------------
# GET /credentials
# ---------------------------------------------------------------------------


@router.get("", response_model=CredentialListResponse)
def list_credentials(
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    return CredentialListResponse(credentials=store.list_credentials(current_user.id))


# ---------------------------------------------------------------------------
# POST /credentials
# ---------------------------------------------------------------------------


@router.post("", response_model=CredentialRow, status_code=status.HTTP_201_CREATED)
def create_credential(
    body: CredentialCreate,
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    return store.create_credential(
        current_user.id,
        name=body.name,
        type=body.type,
        username=body.username,
        password=body.password,
        private_key=body.private_key,
        passphrase=body.passphrase,
    )


# ---------------------------------------------------------------------------
# DELETE /credentials/{id}
# ---------------------------------------------------------------------------


@router.delete("/{credential_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_credential(
    credential_id: int,
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """Sessions that reference it fall back to their cached inline copy."""
    store.delete_credential(credential_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
