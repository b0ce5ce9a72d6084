# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the tag endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------


class TagRequest(BaseModel):
    name: Optional[str] = None


# -- Responses -------------------------------------------------------------


class TagRow(BaseModel):
    id: int
    name: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TagWithCount(TagRow):
    session_count: int = 0


class TagListResponse(BaseModel):
    tags: List[TagWithCount]
