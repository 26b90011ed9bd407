"""Task store - CRUD over the task document.

Every operation reloads the whole document, works on that fresh copy and,
for writes, saves the whole collection back. Writes hold the document's
writer lock from load to save, so concurrent writers are applied one after
another instead of overwriting each other. Reads take no lock; atomic
replacement means they always see a complete document.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from taskdoc import query
from taskdoc.allocator import next_id
from taskdoc.config import IdPolicy, TaskdocConfig
from taskdoc.document import TaskDocument
from taskdoc.errors import TaskNotFoundError
from taskdoc.models import Task, TaskCreate, TaskUpdate, utcnow
from taskdoc.query import SortOrder, TaskFilter

logger = logging.getLogger(__name__)


class TaskStore:
    """CRUD operations over one task document."""

    def __init__(
        self,
        path: str | Path,
        *,
        id_policy: IdPolicy = "max",
        lock_timeout: float = 10.0,
    ) -> None:
        self.document = TaskDocument(path)
        self.id_policy = id_policy
        self.lock_timeout = lock_timeout

    @property
    def path(self) -> Path:
        return self.document.path

    def list_tasks(
        self,
        task_filter: TaskFilter | None = None,
        order: SortOrder | None = None,
    ) -> list[Task]:
        """List tasks, optionally filtered, sorted by ``order`` (id ascending by default)."""
        collection = self.document.load()
        return query.apply(collection.tasks, task_filter, order)

    def get_task(self, task_id: int) -> Task:
        """Get a task by id.

        Raises:
            TaskNotFoundError: if no task has that id.
        """
        for task in self.list_tasks():
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def create_task(self, fields: TaskCreate) -> Task:
        """Create a task, assign it an id and persist it."""
        with self.document.write_lock(self.lock_timeout):
            collection = self.document.load()
            task = Task(
                id=next_id(collection, self.id_policy),
                title=fields.title,
                description=fields.description,
                completed=fields.completed,
                priority=fields.priority,
                createdAt=utcnow(),
            )
            collection.tasks.append(task)
            self.document.save(collection)

        logger.info("Created task %d", task.id)
        return task

    def update_task(self, task_id: int, fields: TaskUpdate) -> Task:
        """Merge the supplied fields into an existing task.

        Fields the caller did not set keep their values; ``id`` and
        ``createdAt`` are never changed.

        Raises:
            TaskNotFoundError: if no task has that id.
        """
        changes = fields.changes()
        with self.document.write_lock(self.lock_timeout):
            collection = self.document.load()
            index = collection.find_index(task_id)
            if index is None:
                raise TaskNotFoundError(task_id)

            task = collection.tasks[index].model_copy(update=changes)
            collection.tasks[index] = task
            self.document.save(collection)

        logger.info("Updated task %d (%s)", task_id, ", ".join(sorted(changes)) or "no changes")
        return task

    def delete_task(self, task_id: int) -> str:
        """Delete a task and return a confirmation message.

        Raises:
            TaskNotFoundError: if no task has that id.
        """
        with self.document.write_lock(self.lock_timeout):
            collection = self.document.load()
            index = collection.find_index(task_id)
            if index is None:
                raise TaskNotFoundError(task_id)

            del collection.tasks[index]
            self.document.save(collection)

        logger.info("Deleted task %d", task_id)
        return f"Successfully deleted task: {task_id}"


_stores: dict[Path, TaskStore] = {}
_stores_lock = threading.Lock()


def open_store(
    path: str | Path,
    *,
    id_policy: IdPolicy = "max",
    lock_timeout: float = 10.0,
) -> TaskStore:
    """Return the process-wide store for the document at ``path``.

    The first call for a path creates the store; later calls share it, so
    every handler in the process goes through the same writer lock.

    Raises:
        ValueError: if the store is already open with different settings.
    """
    key = Path(path).expanduser().resolve()
    with _stores_lock:
        store = _stores.get(key)
        if store is None:
            store = TaskStore(key, id_policy=id_policy, lock_timeout=lock_timeout)
            _stores[key] = store
            logger.debug("Opened store for %s (id_policy=%s)", key, id_policy)
        elif (store.id_policy, store.lock_timeout) != (id_policy, lock_timeout):
            raise ValueError(f"Store for {key} is already open with different settings")
        return store


def store_from_config(config: TaskdocConfig) -> TaskStore:
    """Open the store described by ``config.store``."""
    return open_store(
        config.store.document_path,
        id_policy=config.store.id_policy,
        lock_timeout=config.store.lock_timeout,
    )


def close_stores() -> None:
    """Forget every open store."""
    with _stores_lock:
        _stores.clear()
