"""
Async command layer invoked by the desktop shell.

Each command runs the blocking library call in a worker thread and hands
back a ``CommandResult``: either a value or a plain error string. The shell
has no structured error codes, so nothing here raises library errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

from fastapi.concurrency import run_in_threadpool

from .library import (
    EngineConfig,
    FileImporter,
    LibraryError,
    LocalLibraryStorage,
    PersistenceEngine,
    ProjectMetadata,
    ProjectSettings,
    StoragePaths,
    WordIndexer,
    WordWindowReader,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CommandResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LibraryCommands:
    def __init__(
        self,
        importer: FileImporter,
        reader: WordWindowReader,
        persistence: PersistenceEngine,
        default_buffer_size: int = 1000,
    ):
        self.importer = importer
        self.reader = reader
        self.persistence = persistence
        self.default_buffer_size = default_buffer_size

    @classmethod
    def from_config(cls, config: EngineConfig) -> "LibraryCommands":
        storage = LocalLibraryStorage(StoragePaths(config.data_dir))
        return cls(
            importer=FileImporter(storage, WordIndexer()),
            reader=WordWindowReader(),
            persistence=PersistenceEngine(storage, corrupt_policy=config.corrupt_policy),
            default_buffer_size=config.default_buffer_size,
        )

    async def _run(self, name: str, func: Callable[..., T], *args: Any) -> CommandResult[T]:
        try:
            value = await run_in_threadpool(func, *args)
        except LibraryError as exc:
            logger.error("Command %s failed: %s", name, exc)
            return CommandResult(error=str(exc))
        return CommandResult(value=value)

    async def import_file(self, original_path: str) -> CommandResult[ProjectMetadata]:
        return await self._run("import_file", self.importer.import_file, original_path)

    async def load_word_buffer(
        self, path: str, start_index: int, buffer_size: Optional[int] = None
    ) -> CommandResult[List[str]]:
        size = self.default_buffer_size if buffer_size is None else buffer_size
        return await self._run("load_word_buffer", self.reader.read_window, path, start_index, size)

    async def save_project_metadata(self, metadata: ProjectMetadata) -> CommandResult[None]:
        return await self._run("save_project_metadata", self.persistence.upsert_project, metadata)

    async def load_projects(self) -> CommandResult[List[ProjectMetadata]]:
        return await self._run("load_projects", self.persistence.load_projects)

    async def save_session_progress(self, project_id: str, word_index: int) -> CommandResult[None]:
        return await self._run("save_session_progress", self.persistence.save_progress, project_id, word_index)

    async def load_session_progress(self, project_id: str) -> CommandResult[Optional[int]]:
        return await self._run("load_session_progress", self.persistence.load_progress, project_id)

    async def save_project_settings(
        self, project_id: str, settings: ProjectSettings
    ) -> CommandResult[None]:
        return await self._run("save_project_settings", self.persistence.save_settings, project_id, settings)

    async def load_project_settings(self, project_id: str) -> CommandResult[Optional[ProjectSettings]]:
        return await self._run("load_project_settings", self.persistence.load_settings, project_id)

    async def update_project_progress(self, project_id: str, word_index: int) -> CommandResult[None]:
        return await self._run(
            "update_project_progress", self.persistence.update_project_progress, project_id, word_index
        )


def to_payload(value: Any) -> Any:
    """Convert command values into JSON-ready structures for the shell."""
    if isinstance(value, (ProjectMetadata, ProjectSettings)):
        return value.to_dict()
    if isinstance(value, list):
        return [to_payload(item) for item in value]
    return value
