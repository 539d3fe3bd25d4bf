from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


# PUBLIC_INTERFACE
class Priority(str, Enum):
    """Urgency tag attached to a todo record."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def generate_todo_id() -> str:
    """Generate an opaque unique identifier for a todo record."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    """Timezone-aware creation timestamp for new records."""
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class TodoRecord(BaseModel):
    """
    A single todo entry as held in memory and persisted in storage.

    Fields:
    - id: Opaque unique token, assigned by the store at creation and never changed
    - text: Display text, trimmed and non-empty at creation
    - completed: Completion flag
    - priority: low / medium / high; anything else is read back as medium
    - comment: Free-form note edited from the detail view
    - created_at: Creation timestamp, serialized as ISO-8601 under 'createdAt'

    id and created_at have no defaults, so a stored record missing either
    fails to decode instead of being handed a fresh value.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    comment: str = ""
    created_at: datetime = Field(..., alias="createdAt")

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v: Any) -> Priority:
        """
        Unknown or missing priorities fall back to medium instead of failing
        the whole list.
        """
        if isinstance(v, Priority):
            return v
        try:
            return Priority(v)
        except (ValueError, TypeError):
            return Priority.MEDIUM

    @field_validator("comment", mode="before")
    @classmethod
    def coerce_comment(cls, v: Any) -> str:
        return "" if v is None else v


_RECORD_LIST = TypeAdapter(List[TodoRecord])


# PUBLIC_INTERFACE
def encode_records(records: Iterable[TodoRecord]) -> bytes:
    """Serialize an ordered sequence of records to the persisted JSON array."""
    return _RECORD_LIST.dump_json(list(records), by_alias=True)


# PUBLIC_INTERFACE
def decode_records(raw: bytes) -> List[TodoRecord]:
    """
    Deserialize the persisted JSON array, preserving order.

    Raises:
        pydantic.ValidationError if the payload is not a list of records.
    """
    return _RECORD_LIST.validate_json(raw)
