"""Coroutine facade over :class:`~taskdoc.store.TaskStore`.

Each call runs the blocking store operation in a worker thread, so a slow
disk does not stall the event loop and concurrent coroutines still go
through the store's writer lock.
"""

from __future__ import annotations

import asyncio

from taskdoc.models import Task, TaskCreate, TaskUpdate
from taskdoc.query import SortOrder, TaskFilter
from taskdoc.store import TaskStore


class AsyncTaskStore:
    def __init__(self, store: TaskStore) -> None:
        self.store = store

    async def list_tasks(
        self,
        task_filter: TaskFilter | None = None,
        order: SortOrder | None = None,
    ) -> list[Task]:
        return await asyncio.to_thread(self.store.list_tasks, task_filter, order)

    async def get_task(self, task_id: int) -> Task:
        return await asyncio.to_thread(self.store.get_task, task_id)

    async def create_task(self, fields: TaskCreate) -> Task:
        return await asyncio.to_thread(self.store.create_task, fields)

    async def update_task(self, task_id: int, fields: TaskUpdate) -> Task:
        return await asyncio.to_thread(self.store.update_task, task_id, fields)

    async def delete_task(self, task_id: int) -> str:
        return await asyncio.to_thread(self.store.delete_task, task_id)
