"""Identifier allocation for new tasks."""

from __future__ import annotations

import logging

from taskdoc.config import IdPolicy
from taskdoc.models import TaskCollection

logger = logging.getLogger(__name__)


def next_id(collection: TaskCollection, policy: IdPolicy = "max") -> int:
    """Return the id for the next task created in ``collection``.

    Policies:
    - ``max``: one greater than the largest existing id (1 when empty).
    - ``count``: one greater than the number of tasks. This is the legacy
      scheme; after a delete it can hand out an id that is still in use.
      Such collisions are logged but not prevented.
    """
    if policy == "max":
        return max((task.id for task in collection.tasks), default=0) + 1

    if policy == "count":
        candidate = len(collection.tasks) + 1
        if collection.find_index(candidate) is not None:
            logger.warning("Allocated id %d is already in use (count policy)", candidate)
        return candidate

    raise ValueError(f"Unknown id policy: {policy}")
