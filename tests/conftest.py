"""Shared fixtures for taskdoc tests."""

from __future__ import annotations

import json
import os
from collections.abc import Generator
from pathlib import Path

import pytest

from taskdoc.store import TaskStore, close_stores


@pytest.fixture(autouse=True)
def _fresh_store_registry() -> Generator[None, None, None]:
    """Each test starts without any process-wide stores open."""
    close_stores()
    yield
    close_stores()


@pytest.fixture(autouse=True)
def _no_env_document(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TASKDOC_FILE", raising=False)


@pytest.fixture
def temp_project(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary project directory and change to it."""
    original_dir = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_dir)


@pytest.fixture
def temp_taskdoc_dir(temp_project: Path) -> Path:
    """Create a temporary .taskdoc directory."""
    taskdoc_dir = temp_project / ".taskdoc"
    taskdoc_dir.mkdir()
    return taskdoc_dir


@pytest.fixture
def sample_document_data() -> dict:
    """Sample task document, deliberately not in id order."""
    return {
        "tasks": [
            {
                "id": 2,
                "title": "Write tests",
                "description": "Cover the store",
                "completed": True,
                "priority": "high",
                "createdAt": "2024-01-03T09:00:00Z",
            },
            {
                "id": 1,
                "title": "Sketch design",
                "description": "Decide the document layout",
                "completed": False,
                "priority": "low",
                "createdAt": "2024-01-01T08:00:00Z",
            },
            {
                "id": 3,
                "title": "Ship it",
                "description": "Tag a release",
                "completed": False,
                "priority": "medium",
                "createdAt": "2024-01-02T12:30:00Z",
            },
        ]
    }


@pytest.fixture
def document_path(tmp_path: Path) -> Path:
    """Path for a task document that does not exist yet."""
    return tmp_path / "task.json"


@pytest.fixture
def sample_document(document_path: Path, sample_document_data: dict) -> Path:
    """Write the sample document to disk."""
    document_path.write_text(json.dumps(sample_document_data, indent=2))
    return document_path


@pytest.fixture
def store(document_path: Path) -> TaskStore:
    """A store over an empty (missing) document."""
    return TaskStore(document_path, lock_timeout=2.0)


@pytest.fixture
def sample_store(sample_document: Path) -> TaskStore:
    """A store over the sample document."""
    return TaskStore(sample_document, lock_timeout=2.0)
