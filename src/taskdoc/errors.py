"""Exceptions raised by taskdoc.

Everything derives from TaskStoreError. Storage problems derive from
StoreInternalError so callers can treat them as one opaque failure.
"""

from __future__ import annotations


class TaskStoreError(Exception):
    """Base class for all taskdoc errors."""


class TaskNotFoundError(TaskStoreError):
    """No task with the requested id exists in the collection."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Unable to find task: {task_id}")
        self.task_id = task_id


class TaskValidationError(TaskStoreError):
    """Input was rejected before reaching the store."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "Invalid Input")
        self.errors = list(errors)


class StoreInternalError(TaskStoreError):
    """The document could not be read, written or understood."""


class StorageUnavailableError(StoreInternalError):
    """The storage medium could not be read or written."""


class LockTimeoutError(StorageUnavailableError):
    """The writer lock was not acquired within the configured timeout."""


class CorruptDocumentError(StoreInternalError):
    """The document bytes do not parse into the expected envelope."""
