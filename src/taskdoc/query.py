"""Filtering and ordering of a loaded collection."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Literal

from taskdoc.models import Priority, Task

SortField = Literal["id", "createdAt"]
SORT_FIELDS: tuple[str, ...] = ("id", "createdAt")

_SORT_KEYS: dict[str, Callable[[Task], Any]] = {
    "id": lambda task: task.id,
    "createdAt": lambda task: task.createdAt,
}


@dataclass(frozen=True)
class TaskFilter:
    """Restrict a listing by completion state or priority.

    Only one dimension applies; ``completed`` wins when both are set.
    """

    completed: bool | None = None
    priority: Priority | None = None

    def matches(self, task: Task) -> bool:
        if self.completed is not None:
            return task.completed == self.completed
        if self.priority is not None:
            return task.priority == self.priority
        return True


@dataclass(frozen=True)
class SortOrder:
    """Sort key and direction for a listing."""

    field: SortField = "id"
    ascending: bool = True


def apply(
    tasks: Iterable[Task],
    task_filter: TaskFilter | None = None,
    order: SortOrder | None = None,
) -> list[Task]:
    """Return a new, ordered and filtered list of ``tasks``.

    The input is never modified. Sorting is stable, so tasks with equal
    keys keep their document order.
    """
    order = order or SortOrder()
    try:
        key = _SORT_KEYS[order.field]
    except KeyError:
        raise ValueError(f"Cannot sort by {order.field!r}") from None

    ordered = sorted(tasks, key=key, reverse=not order.ascending)

    if task_filter is None:
        return ordered
    return [task for task in ordered if task_filter.matches(task)]
