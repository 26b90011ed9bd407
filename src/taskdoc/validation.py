"""Input validation for callers of the task store.

Validators never raise on bad input. They return a :class:`ValidationResult`
holding either the parsed value or the list of problems, and the caller
decides what to do before anything reaches the store.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from taskdoc.errors import TaskValidationError
from taskdoc.models import PRIORITIES, Priority, TaskCreate, TaskUpdate
from taskdoc.query import SORT_FIELDS, SortOrder, TaskFilter

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

BOOLEAN_VALUES: tuple[str, ...] = ("true", "false")


@dataclass
class ValidationResult(Generic[T]):
    """Outcome of validating one piece of input."""

    value: T | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> T:
        """Return the value, or raise TaskValidationError with every problem found."""
        if self.errors:
            raise TaskValidationError(self.errors)
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class ListQuery:
    """Validated arguments for a listing."""

    task_filter: TaskFilter
    order: SortOrder


def parse_task_id(raw: str | int) -> ValidationResult[int]:
    """Parse a task id; it must be a positive integer."""
    message = "Invalid Input: id should be a valid positive integer value"

    if isinstance(raw, bool):
        return ValidationResult(errors=[message])
    if isinstance(raw, str):
        text = raw.strip()
        if not text.isascii() or not text.isdigit():
            return ValidationResult(errors=[message])
        raw = int(text)
    if not isinstance(raw, int) or raw <= 0:
        return ValidationResult(errors=[message])
    return ValidationResult(value=raw)


def parse_priority(level: str) -> ValidationResult[Priority]:
    if level not in PRIORITIES:
        return ValidationResult(
            errors=[f"Invalid Input: Field Priority should be either of {', '.join(PRIORITIES)}"]
        )
    return ValidationResult(value=level)  # type: ignore[arg-type]


def parse_list_query(
    completed: str | None = None,
    sort_field: str | None = None,
    asc: str | None = None,
    priority: str | None = None,
) -> ValidationResult[ListQuery]:
    """Validate listing arguments given as raw strings.

    Defaults: sort by ``id``, ascending, no filter.
    """
    errors: list[str] = []
    sort_field = "id" if sort_field is None else sort_field
    asc = "true" if asc is None else asc

    if completed is not None and completed not in BOOLEAN_VALUES:
        errors.append("Invalid Input: completed can only have true or false values")
    if asc not in BOOLEAN_VALUES:
        errors.append("Invalid Input: asc can only have true or false values")
    if sort_field not in SORT_FIELDS:
        errors.append(f"Invalid Input: field can only have {', '.join(SORT_FIELDS)}")
    if priority is not None:
        errors.extend(parse_priority(priority).errors)

    if errors:
        return ValidationResult(errors=errors)

    return ValidationResult(
        value=ListQuery(
            task_filter=TaskFilter(
                completed=None if completed is None else completed == "true",
                priority=priority,  # type: ignore[arg-type]
            ),
            order=SortOrder(field=sort_field, ascending=asc == "true"),  # type: ignore[arg-type]
        )
    )


def validate_create(payload: Any) -> ValidationResult[TaskCreate]:
    """Validate the fields for a new task."""
    return _validate_model(TaskCreate, payload)


def validate_update(payload: Any) -> ValidationResult[TaskUpdate]:
    """Validate a partial update. Supplied fields follow the creation rules."""
    return _validate_model(TaskUpdate, payload)


def _validate_model(model: type[M], payload: Any) -> ValidationResult[M]:
    if not isinstance(payload, Mapping):
        return ValidationResult(errors=["Invalid Input: task fields must be an object"])
    try:
        return ValidationResult(value=model.model_validate(dict(payload)))
    except ValidationError as exc:
        return ValidationResult(errors=_messages(exc))


def _messages(exc: ValidationError) -> list[str]:
    """Turn pydantic errors into user-facing messages."""
    messages: list[str] = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        name = str(loc[0]).capitalize() if loc else "Input"
        kind = error["type"]

        if kind == "missing":
            messages.append(f"Invalid Input, Missing required field: {name}")
        elif kind == "string_type":
            messages.append(f"Invalid Input, Field {name} must be a string value")
        elif kind == "bool_type":
            messages.append(f'Invalid Input: Field "{name.lower()}" must be a boolean value')
        elif kind == "literal_error":
            messages.append(
                f"Invalid Input: Field {name} can only have any of {', '.join(PRIORITIES)}"
            )
        elif kind == "value_error" and "error" in error.get("ctx", {}):
            messages.append(f"Invalid Input, {error['ctx']['error']}")
        else:
            messages.append(f"Invalid Input: {name} {error['msg']}")
    return messages
