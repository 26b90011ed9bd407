"""Configuration models for taskdoc."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

IdPolicy = Literal["max", "count"]


class StoreConfig(BaseModel):
    """Configuration for the task document."""

    path: str = "task.json"
    id_policy: IdPolicy = "max"
    lock_timeout: float = Field(default=10.0, gt=0)

    @property
    def document_path(self) -> Path:
        return Path(self.path).expanduser()


class LoggingConfig(BaseModel):
    """Configuration for log output."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: str | None = None


class TaskdocConfig(BaseModel):
    """Main configuration for taskdoc."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> TaskdocConfig:
        """Load configuration from file or return defaults.

        ``TASKDOC_FILE`` in the environment overrides the document path.
        """
        if path is None:
            path = CONFIG_FILE

        if path.exists():
            with open(path) as f:
                data = json.load(f)
            config = cls.model_validate(data)
        else:
            config = cls()

        env_path = os.getenv(ENV_FILE)
        if env_path:
            config.store.path = env_path

        return config

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_FILE

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(exclude_none=True), f, indent=2)


# Default config directory
TASKDOC_DIR = Path(".taskdoc")
CONFIG_FILE = TASKDOC_DIR / "config.json"
ENV_FILE = "TASKDOC_FILE"
