"""Concurrent writers must not lose each other's updates."""

from __future__ import annotations

import asyncio
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from taskdoc.async_store import AsyncTaskStore
from taskdoc.errors import LockTimeoutError, TaskNotFoundError
from taskdoc.models import TaskCreate, TaskUpdate
from taskdoc.query import SortOrder, TaskFilter
from taskdoc.store import TaskStore, open_store


class TestThreadedWriters:
    """Writers on threads sharing one store."""

    def test_concurrent_creates_all_persisted(self, document_path: Path) -> None:
        """Test N concurrent creates leave N tasks with distinct ids."""
        store = open_store(document_path)

        with ThreadPoolExecutor(max_workers=8) as pool:
            created = list(
                pool.map(
                    lambda n: store.create_task(TaskCreate(title=f"t{n}", description="d")),
                    range(40),
                )
            )

        ids = [t.id for t in store.list_tasks()]
        assert len(ids) == 40
        assert sorted(ids) == list(range(1, 41))
        assert sorted(t.id for t in created) == ids

    def test_separate_stores_same_document(self, document_path: Path) -> None:
        """Test two store objects on one path still serialize through the lock file."""
        first = TaskStore(document_path)
        second = TaskStore(document_path)

        def create(n: int) -> None:
            store = first if n % 2 else second
            store.create_task(TaskCreate(title=f"t{n}", description="d"))

        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(create, range(30)))

        assert len(first.list_tasks()) == 30

    def test_concurrent_updates_to_different_tasks(self, sample_store: TaskStore) -> None:
        """Test concurrent updates of different tasks are all kept."""
        with ThreadPoolExecutor(max_workers=3) as pool:
            list(
                pool.map(
                    lambda task_id: sample_store.update_task(task_id, TaskUpdate(completed=True)),
                    [1, 2, 3],
                )
            )

        assert all(t.completed for t in sample_store.list_tasks())

    def test_reads_see_whole_documents(self, document_path: Path) -> None:
        """Test readers running beside writers never see a partial document."""
        store = open_store(document_path)
        store.create_task(TaskCreate(title="seed", description="d"))
        stop = threading.Event()
        seen: list[int] = []

        def reader() -> None:
            while not stop.is_set():
                seen.append(len(store.list_tasks()))

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            for n in range(25):
                store.create_task(TaskCreate(title=f"t{n}", description="d"))
        finally:
            stop.set()
            thread.join()

        assert seen == sorted(seen)
        assert len(json.loads(document_path.read_text())["tasks"]) == 26

    def test_writer_times_out(self, document_path: Path) -> None:
        """Test a writer blocked past the lock timeout fails instead of racing."""
        store = TaskStore(document_path, lock_timeout=0.1)

        with store.document.write_lock(timeout=1.0):
            with ThreadPoolExecutor(max_workers=1) as pool:
                future = pool.submit(
                    store.create_task, TaskCreate(title="late", description="d")
                )
                with pytest.raises(LockTimeoutError):
                    future.result(timeout=5)

        assert store.list_tasks() == []


class TestAsyncTaskStore:
    """Tests for the coroutine facade."""

    @pytest.mark.asyncio
    async def test_crud(self, document_path: Path) -> None:
        """Test every operation through the async facade."""
        store = AsyncTaskStore(open_store(document_path))

        created = await store.create_task(TaskCreate(title="A", description="d"))
        assert created.id == 1
        assert await store.get_task(1) == created

        updated = await store.update_task(1, TaskUpdate(priority="high"))
        assert updated.priority == "high"

        listed = await store.list_tasks(TaskFilter(priority="high"), SortOrder("createdAt"))
        assert listed == [updated]

        assert await store.delete_task(1) == "Successfully deleted task: 1"
        with pytest.raises(TaskNotFoundError):
            await store.get_task(1)

    @pytest.mark.asyncio
    async def test_gathered_creates_not_lost(self, document_path: Path) -> None:
        """Test concurrent coroutines each get their own id and all persist."""
        store = AsyncTaskStore(open_store(document_path))

        created = await asyncio.gather(
            *(store.create_task(TaskCreate(title=f"t{n}", description="d")) for n in range(20))
        )

        assert sorted(t.id for t in created) == list(range(1, 21))
        assert len(await store.list_tasks()) == 20
