"""
Inkwell Backend - Post Schemas
===============================

Post creation arrives as a multipart form (it carries the thumbnail). Edits
arrive either as a multipart/urlencoded form or as a JSON body matching
EditPostRequest when no new thumbnail is sent.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EditPostRequest(BaseModel):
    """Text fields of a post edit; presence rules live in PostService."""

    title: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None


class PostResponse(BaseModel):
    """Full representation of a post, as returned by every post endpoint."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(description="Unique post identifier")
    title: str
    category: str
    description: str
    thumbnail: str = Field(description="Thumbnail filename under /uploads")
    creator: uuid.UUID = Field(description="ID of the authoring user")
    created_at: datetime
    updated_at: datetime
