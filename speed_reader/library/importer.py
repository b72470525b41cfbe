from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Optional, Union

from .errors import InvalidInputError, StorageIOError
from .indexing import Indexer, WordIndexer
from .models import ProjectMetadata, utc_now
from .storage import LocalLibraryStorage

logger = logging.getLogger(__name__)


class FileImporter:
    """
    Copies a source file into private storage under a fresh id and indexes
    the copy. Registering the returned metadata in the catalog is a separate
    step left to the caller.
    """

    def __init__(self, storage: LocalLibraryStorage, indexer: Optional[Indexer] = None):
        self.storage = storage
        self.indexer = indexer or WordIndexer()

    def import_file(self, source_path: Union[str, Path]) -> ProjectMetadata:
        source = Path(source_path)
        filename = self._extract_filename(source_path)
        if not source.is_file():
            raise StorageIOError(f"Source file not found or not a regular file: {source}")

        project_id = str(uuid.uuid4())
        saved_path = self.storage.save_imported_copy(project_id, source, filename)

        # Index the private copy so counts match what windows will later read.
        try:
            total_words = self.indexer.count(saved_path)
        except StorageIOError:
            self.storage.remove_file(saved_path)
            raise

        metadata = ProjectMetadata(
            id=project_id,
            filename=filename,
            saved_path=str(saved_path),
            total_words=total_words,
            current_word_index=0,
            created_at=utc_now(),
        )
        logger.info("Imported %s as project %s (%s words)", filename, project_id, total_words)
        return metadata

    def _extract_filename(self, source_path: Union[str, Path]) -> str:
        name = Path(source_path).name
        if name in ("", ".", ".."):
            raise InvalidInputError(f"Cannot extract a file name from {str(source_path)!r}")
        return name
