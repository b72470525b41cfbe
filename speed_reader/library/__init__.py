"""
Library subsystem exports.
"""

from .config import CORRUPT_POLICY_EMPTY, CORRUPT_POLICY_RAISE, EngineConfig
from .errors import (
    DocumentCorruptError,
    InvalidInputError,
    LibraryError,
    SerializationError,
    StorageIOError,
)
from .importer import FileImporter
from .indexing import Indexer, WordIndexer, iter_words
from .locks import DocumentLocks
from .models import ProjectMetadata, ProjectSession, ProjectSettings, session_id_for
from .repository import JsonCollectionStore, PersistenceEngine, ProjectStore, SessionStore
from .storage import LocalLibraryStorage, StoragePaths
from .windowing import WordWindowReader

__all__ = [
    "CORRUPT_POLICY_EMPTY",
    "CORRUPT_POLICY_RAISE",
    "DocumentCorruptError",
    "DocumentLocks",
    "EngineConfig",
    "FileImporter",
    "Indexer",
    "InvalidInputError",
    "JsonCollectionStore",
    "LibraryError",
    "LocalLibraryStorage",
    "PersistenceEngine",
    "ProjectMetadata",
    "ProjectSession",
    "ProjectSettings",
    "ProjectStore",
    "SerializationError",
    "SessionStore",
    "StorageIOError",
    "StoragePaths",
    "WordIndexer",
    "WordWindowReader",
    "iter_words",
    "session_id_for",
]
