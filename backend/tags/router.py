# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Tag endpoints – CRUD for the current user's tags.

Tag names are unique per user regardless of case.  Assigning tags to a
session happens through ``PUT /sessions/{id}/tags`` or the session payload.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from core.errors import NotFound
from core.security import get_current_user
from dependencies import get_tag_service
from models.user import User
from tags.schemas import TagListResponse, TagRequest, TagRow, TagWithCount
from tags.service import TagService

router = APIRouter(prefix="/tags", tags=["tags"])


# ---------------------------------------------------------------------------
# GET /tags  – list with session counts
# ---------------------------------------------------------------------------


@router.get("", response_model=TagListResponse)
def list_tags(
    current_user: User = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    """Ordered by name, case-insensitively."""
    rows = service.list_tags(current_user.id)
    return TagListResponse(
        tags=[
            TagWithCount(**TagRow.model_validate(tag).model_dump(), session_count=count)
            for tag, count in rows
        ]
    )


# ---------------------------------------------------------------------------
# POST /tags
# ---------------------------------------------------------------------------


@router.post("", response_model=TagRow, status_code=status.HTTP_201_CREATED)
def create_tag(
    body: TagRequest,
    current_user: User = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    return service.create_tag(current_user.id, body.name)


# ---------------------------------------------------------------------------
# GET /tags/{id}
# ---------------------------------------------------------------------------


@router.get("/{tag_id}", response_model=TagRow)
def get_tag(
    tag_id: int,
    current_user: User = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    tag = service.get_tag(tag_id, current_user.id)
    if tag is None:
        raise NotFound("Tag not found")
    return tag


# ---------------------------------------------------------------------------
# PUT /tags/{id}  – rename
# ---------------------------------------------------------------------------


@router.put("/{tag_id}", response_model=TagRow)
def update_tag(
    tag_id: int,
    body: TagRequest,
    current_user: User = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    return service.update_tag(tag_id, current_user.id, body.name)


# ---------------------------------------------------------------------------
# DELETE /tags/{id}  – sessions lose the tag, nothing else changes
# ---------------------------------------------------------------------------


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(
    tag_id: int,
    current_user: User = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    service.delete_tag(tag_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
