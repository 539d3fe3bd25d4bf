from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .models import Priority, TodoRecord


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for adding a new todo. Blank text is accepted here and ignored by
    the store.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"text": "Buy milk"}})

    text: str = Field(..., description="Display text of the new todo")


# PUBLIC_INTERFACE
class TodoDetailUpdate(BaseModel):
    """
    Schema for saving the detail view. Only comment and priority can change.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"comment": "Whole milk, 2 litres", "priority": "high"}}
    )

    comment: str = Field(default="", description="Free-form note attached to the todo")
    priority: Priority = Field(default=Priority.MEDIUM, description="One of low, medium, high")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a todo record.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3f1c9a6e0b7d4c1e9a2b5d8f7e6c4a10",
                "text": "Buy milk",
                "completed": False,
                "priority": "medium",
                "comment": "",
                "createdAt": "2025-01-25T10:15:30.123456Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo")
    text: str = Field(..., description="Display text")
    completed: bool = Field(..., description="Completion status flag")
    priority: Priority = Field(..., description="Priority level")
    comment: str = Field(..., description="Free-form note")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")

    @classmethod
    def from_record(cls, record: TodoRecord) -> "TodoOut":
        return cls.model_validate(record.model_dump())


# PUBLIC_INTERFACE
class TodoListOut(BaseModel):
    """
    The list view: records newest first plus the derived counters shown in
    the header and progress bar.
    """

    model_config = ConfigDict(populate_by_name=True)

    items: List[TodoOut] = Field(..., description="Todos, newest first")
    completed_count: int = Field(..., alias="completedCount", description="Number of completed todos")
    total_count: int = Field(..., alias="totalCount", description="Number of todos")
    progress: float = Field(..., description="completedCount / totalCount, 0 when empty")
    all_done: bool = Field(..., alias="allDone", description="True when every todo is completed")


# PUBLIC_INTERFACE
class PriorityOut(BaseModel):
    """Display metadata for a priority level."""

    key: Priority
    label: str
    color: str
    icon: str
