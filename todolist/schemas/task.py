from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Priority = Literal["low", "medium", "high"]


class TaskCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    title: str
    description: str = ""
    assignee: str = ""
    priority: Priority = "medium"
    category: str = ""
    deadline: str = ""
    # accepted but ignored: new tasks always start open
    completed: bool = False

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v):
        if not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()


class TaskUpdate(BaseModel):
    """Partial update. Only keys sent by the client end up in ``model_fields_set``."""

    model_config = ConfigDict(extra="forbid", strict=True)

    title: Optional[str] = None
    description: Optional[str] = None
    assignee: Optional[str] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    deadline: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    assignee: str = ""
    priority: Priority = "medium"
    category: str = ""
    deadline: str = ""
    completed: bool = False
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(None, serialization_alias="updatedAt")


class TaskDeleted(BaseModel):
    message: str
    id: int
