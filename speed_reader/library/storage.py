from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import SerializationError, StorageIOError

logger = logging.getLogger(__name__)


@dataclass
class StoragePaths:
    root: Path

    def files_dir(self) -> Path:
        return self.root / "files"

    def imported_file_path(self, project_id: str, original_filename: str) -> Path:
        return self.files_dir() / f"{project_id}_{original_filename}"

    def projects_path(self) -> Path:
        return self.root / "projects.json"

    def sessions_path(self) -> Path:
        return self.root / "sessions.json"


class LocalLibraryStorage:
    """
    Manages the application-private data directory: imported copies under
    ``files/`` and the pretty-printed JSON documents next to it.
    """

    def __init__(self, storage_paths: StoragePaths):
        self.paths = storage_paths

    def ensure_base_dirs(self) -> None:
        target = self.paths.files_dir()
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageIOError(f"Failed to create storage directory {target}: {exc}") from exc

    def save_imported_copy(self, project_id: str, source: Path, original_filename: str) -> Path:
        self.ensure_base_dirs()
        target = self.paths.imported_file_path(project_id, original_filename)
        try:
            shutil.copyfile(source, target)
        except OSError as exc:
            self.remove_file(target)
            raise StorageIOError(f"Failed to copy {source} to {target}: {exc}") from exc
        return target.resolve()

    def remove_file(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove %s: %s", path, exc)

    def read_document(self, path: Path) -> Any:
        """
        Return the parsed JSON at ``path`` or None when the file does not exist.
        Parse errors propagate as ``ValueError`` so the caller decides the policy.
        """
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageIOError(f"Failed to read {path}: {exc}") from exc

    def write_document(self, path: Path, payload: Any) -> None:
        """
        Serialize ``payload`` and atomically replace ``path`` with it.
        Readers see either the previous document or the new one, never a torn write.
        """
        try:
            text = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Failed to serialize {path.name}: {exc}") from exc

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path_str = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        except OSError as exc:
            raise StorageIOError(f"Failed to prepare write of {path}: {exc}") from exc

        tmp_path = Path(tmp_path_str)
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(text)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise StorageIOError(f"Failed to write {path}: {exc}") from exc

    def quarantine_document(self, path: Path) -> Path:
        """
        Move an unparseable document aside so the next write does not destroy
        it. Each incident gets its own ``<name>.corrupt-<UTC stamp>`` file.
        """
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        target = path.with_name(f"{path.name}.corrupt-{stamp}")
        suffix = 1
        while target.exists():
            target = path.with_name(f"{path.name}.corrupt-{stamp}-{suffix}")
            suffix += 1
        try:
            os.replace(path, target)
        except FileNotFoundError:
            return target
        except OSError as exc:
            raise StorageIOError(f"Failed to preserve corrupt document {path}: {exc}") from exc
        logger.warning("Preserved unreadable document %s as %s", path, target)
        return target
