"""Persistence for the task document.

The whole collection lives in one JSON file. Reads parse the full file;
writes replace it atomically (write a sibling temp file, fsync, then
``os.replace`` and fsync the directory), so a reader sees either the old or
the new document and a failed write never truncates the old one.

Writers serialize through :meth:`TaskDocument.write_lock`: a thread lock for
writers inside this process and an exclusive ``flock`` on a sidecar
``.lock`` file for writers in other processes.
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
import os
import threading
import time
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from taskdoc.errors import CorruptDocumentError, LockTimeoutError, StorageUnavailableError
from taskdoc.models import TaskCollection

logger = logging.getLogger(__name__)

_LOCK_SUFFIX = ".lock"
_LOCK_POLL_SECONDS = 0.02


class TaskDocument:
    """Reads and writes a :class:`TaskCollection` as one JSON document."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + _LOCK_SUFFIX)
        self._thread_lock = threading.Lock()

    def load(self) -> TaskCollection:
        """Load the full collection.

        A missing document is an empty collection.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No document at %s, starting empty", self.path)
            return TaskCollection()
        except OSError as exc:
            logger.error("Unable to read %s: %s", self.path, exc)
            raise StorageUnavailableError(f"Unable to read {self.path}") from exc
        except UnicodeDecodeError as exc:
            logger.error("Document %s is not valid UTF-8", self.path)
            raise CorruptDocumentError(f"{self.path} is not valid UTF-8") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Error parsing %s: %s", self.path, exc)
            raise CorruptDocumentError(f"{self.path} is not valid JSON") from exc

        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            logger.error("Document %s has no 'tasks' list", self.path)
            raise CorruptDocumentError(f"{self.path} must be a mapping with a 'tasks' list")

        try:
            collection = TaskCollection.model_validate(data)
        except ValidationError as exc:
            logger.error("Document %s holds malformed tasks: %s", self.path, exc)
            raise CorruptDocumentError(f"{self.path} holds malformed tasks") from exc

        logger.debug("Loaded %d tasks from %s", len(collection.tasks), self.path)
        return collection

    def save(self, collection: TaskCollection) -> None:
        """Replace the document with ``collection``."""
        payload = json.dumps(collection.to_dict(), indent=2) + "\n"
        tmp = self.path.with_name(f"{self.path.name}.tmp.{os.getpid()}")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
            _fsync_directory(self.path.parent)
        except OSError as exc:
            logger.error("Unable to write %s: %s", self.path, exc)
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise StorageUnavailableError(f"Unable to write {self.path}") from exc

        logger.debug("Saved %d tasks to %s", len(collection.tasks), self.path)

    @contextlib.contextmanager
    def write_lock(self, timeout: float) -> Iterator[None]:
        """Hold the single-writer lock for the duration of the context.

        Raises:
            LockTimeoutError: if the lock is not acquired within ``timeout``
                seconds.
            StorageUnavailableError: if the lock file cannot be opened.
        """
        deadline = time.monotonic() + timeout

        if not self._thread_lock.acquire(timeout=timeout):
            logger.warning("Timed out waiting for writer lock on %s", self.path)
            raise LockTimeoutError(f"Timed out after {timeout}s waiting to write {self.path}")

        try:
            try:
                self.lock_path.parent.mkdir(parents=True, exist_ok=True)
                handle = open(self.lock_path, "a+")
            except OSError as exc:
                logger.error("Unable to open lock file %s: %s", self.lock_path, exc)
                raise StorageUnavailableError(f"Unable to lock {self.path}") from exc

            with handle:
                self._flock(handle.fileno(), deadline, timeout)
                try:
                    yield
                finally:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._thread_lock.release()

    def _flock(self, fd: int, deadline: float, timeout: float) -> None:
        contended = False
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                return
            except BlockingIOError:
                if not contended:
                    logger.debug("Writer lock on %s held by another process, waiting", self.path)
                    contended = True
                if time.monotonic() >= deadline:
                    logger.warning("Timed out waiting for writer lock on %s", self.path)
                    raise LockTimeoutError(
                        f"Timed out after {timeout}s waiting to write {self.path}"
                    ) from None
                time.sleep(_LOCK_POLL_SECONDS)
            except OSError as exc:
                logger.error("Unable to lock %s: %s", self.lock_path, exc)
                raise StorageUnavailableError(f"Unable to lock {self.path}") from exc


def _fsync_directory(directory: Path) -> None:
    """Flush the directory entry so a completed rename survives a crash."""
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
