"""Task models and the document envelope."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationInfo,
    field_validator,
    model_validator,
)

Priority = Literal["low", "medium", "high"]
PRIORITIES: tuple[str, ...] = ("low", "medium", "high")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Task(BaseModel):
    """A single task record as stored in the document.

    Keys the model does not know are kept, so a rewrite of the document
    carries them through unchanged.
    """

    model_config = ConfigDict(extra="allow")

    id: StrictInt = Field(gt=0)
    title: StrictStr
    description: StrictStr
    completed: StrictBool = False
    priority: Priority = "low"
    createdAt: datetime

    @field_validator("createdAt")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps would not compare against aware ones when sorting.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class TaskCollection(BaseModel):
    """The document envelope: a mapping with a single ``tasks`` list."""

    tasks: list[Task] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return self.model_dump(mode="json")

    def find_index(self, task_id: int) -> int | None:
        """Position of the first task with ``task_id``, or None."""
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                return index
        return None


def _require_text(value: str, field_name: str) -> str:
    if value.strip() == "":
        raise ValueError(f"Field {field_name} can not be an empty string")
    return value


class TaskCreate(BaseModel):
    """Fields accepted when creating a task.

    Defaults live here rather than in the store: a task is created
    incomplete and with low priority unless the caller says otherwise.
    """

    title: StrictStr
    description: StrictStr
    completed: StrictBool = False
    priority: Priority = "low"

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name.capitalize())


class TaskUpdate(BaseModel):
    """A partial update. Only fields the caller set are merged."""

    title: StrictStr | None = None
    description: StrictStr | None = None
    completed: StrictBool | None = None
    priority: Priority | None = None

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, value: str | None, info: ValidationInfo) -> str | None:
        if value is None:
            return value
        return _require_text(value, info.field_name.capitalize())

    @model_validator(mode="after")
    def _reject_nulls(self) -> TaskUpdate:
        for name in sorted(self.model_fields_set):
            if getattr(self, name) is None:
                raise ValueError(f"Field {name.capitalize()} can not be null")
        return self

    def changes(self) -> dict[str, Any]:
        """The supplied fields as a dict, suitable for merging."""
        return self.model_dump(include=self.model_fields_set)
