from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from eventease.api.v1.schemas.events import SchemaBase


class FeedbackIn(SchemaBase):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(max_length=2000)

    @field_validator("comment", mode="after")
    @classmethod
    def _require_comment(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("comment is required")
        return value


class FeedbackOut(SchemaBase):
    id: UUID
    event_id: UUID
    participant_id: UUID
    participant_name: str
    rating: int
    comment: str
    created_at: datetime
    updated_at: datetime
