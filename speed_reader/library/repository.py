from __future__ import annotations

import logging
from typing import Callable, Generic, List, Optional, Tuple, Type, TypeVar

from .config import CORRUPT_POLICY_EMPTY, CORRUPT_POLICY_RAISE
from .errors import DocumentCorruptError, InvalidInputError
from .locks import DocumentLocks
from .models import ProjectMetadata, ProjectSession, ProjectSettings, utc_now
from .storage import LocalLibraryStorage

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", ProjectMetadata, ProjectSession)


class JsonCollectionStore(Generic[RecordT]):
    """
    A collection of records persisted as one JSON array.

    Every mutation is a full read-modify-write of the document under that
    document's lock, finished by an atomic replace. This is fine for a
    single-user catalog and does not scale to large collections.
    """

    record_type: Type[RecordT]

    def __init__(
        self,
        storage: LocalLibraryStorage,
        locks: DocumentLocks,
        corrupt_policy: str = CORRUPT_POLICY_EMPTY,
    ):
        self.storage = storage
        self.locks = locks
        self.corrupt_policy = corrupt_policy

    @property
    def path(self):
        raise NotImplementedError

    def key_of(self, record: RecordT) -> str:
        raise NotImplementedError

    def load(self) -> List[RecordT]:
        records, _ = self._read_records()
        return records

    def find(self, key: str) -> Optional[RecordT]:
        for record in self.load():
            if self.key_of(record) == key:
                return record
        return None

    def upsert(self, record: RecordT) -> None:
        key = self.key_of(record)

        def replace_or_append(records: List[RecordT]) -> bool:
            for idx, existing in enumerate(records):
                if self.key_of(existing) == key:
                    records[idx] = record
                    return True
            records.append(record)
            return True

        self.modify(replace_or_append)

    def modify(self, mutate: Callable[[List[RecordT]], bool]) -> None:
        """
        Apply ``mutate`` to the current collection and write it back if it
        reports a change.
        """
        with self.locks.hold(self.path):
            records, corrupt = self._read_records()
            if not mutate(records):
                return
            if corrupt:
                self.storage.quarantine_document(self.path)
            self.storage.write_document(self.path, [r.to_dict() for r in records])
        logger.debug("Wrote %s records to %s", len(records), self.path)

    def _read_records(self) -> Tuple[List[RecordT], bool]:
        path = self.path
        try:
            payload = self.storage.read_document(path)
            if payload is None:
                return [], False
            if not isinstance(payload, list):
                raise ValueError(f"expected a JSON array, got {type(payload).__name__}")
            return [self.record_type.from_dict(item) for item in payload], False
        except (AttributeError, KeyError, OverflowError, RecursionError, TypeError, ValueError) as exc:
            if self.corrupt_policy == CORRUPT_POLICY_RAISE:
                raise DocumentCorruptError(f"Cannot parse {path}: {exc}") from exc
            logger.warning("Ignoring unreadable document %s: %s", path, exc)
            return [], True


class ProjectStore(JsonCollectionStore[ProjectMetadata]):
    record_type = ProjectMetadata

    @property
    def path(self):
        return self.storage.paths.projects_path()

    def key_of(self, record: ProjectMetadata) -> str:
        return record.id


class SessionStore(JsonCollectionStore[ProjectSession]):
    record_type = ProjectSession

    @property
    def path(self):
        return self.storage.paths.sessions_path()

    def key_of(self, record: ProjectSession) -> str:
        return record.project_id


class PersistenceEngine:
    """
    Merge rules over the project catalog and the session collection.

    Sessions are created lazily: whichever of progress or settings is saved
    first creates the session and defaults the other half. Lookups for a
    project with no session return None rather than raising.
    """

    def __init__(
        self,
        storage: LocalLibraryStorage,
        corrupt_policy: str = CORRUPT_POLICY_EMPTY,
        locks: Optional[DocumentLocks] = None,
    ):
        self.storage = storage
        self.locks = locks or DocumentLocks()
        self.projects = ProjectStore(storage, self.locks, corrupt_policy)
        self.sessions = SessionStore(storage, self.locks, corrupt_policy)

    # region Projects
    def load_projects(self) -> List[ProjectMetadata]:
        return self.projects.load()

    def get_project(self, project_id: str) -> Optional[ProjectMetadata]:
        return self.projects.find(project_id)

    def upsert_project(self, metadata: ProjectMetadata) -> None:
        self.projects.upsert(metadata)
        logger.info("Saved project %s (%s)", metadata.id, metadata.filename)

    # endregion

    # region Sessions
    def load_sessions(self) -> List[ProjectSession]:
        return self.sessions.load()

    def get_session(self, project_id: str) -> Optional[ProjectSession]:
        return self.sessions.find(project_id)

    def upsert_session(self, session: ProjectSession) -> None:
        self.sessions.upsert(session)

    def save_progress(self, project_id: str, word_index: int) -> None:
        _check_word_index(word_index)

        def apply(session: Optional[ProjectSession]) -> ProjectSession:
            if session is None:
                return ProjectSession.new(project_id, current_word_index=word_index)
            session.current_word_index = word_index
            session.last_read_date = utc_now()
            return session

        self._merge_session(project_id, apply)

    def save_settings(self, project_id: str, settings: ProjectSettings) -> None:
        def apply(session: Optional[ProjectSession]) -> ProjectSession:
            if session is None:
                return ProjectSession.new(project_id, settings=settings)
            session.settings = settings
            session.last_read_date = utc_now()
            return session

        self._merge_session(project_id, apply)

    def load_progress(self, project_id: str) -> Optional[int]:
        session = self.get_session(project_id)
        return session.current_word_index if session else None

    def load_settings(self, project_id: str) -> Optional[ProjectSettings]:
        session = self.get_session(project_id)
        return session.settings if session else None

    def update_project_progress(self, project_id: str, word_index: int) -> None:
        """
        Record progress in the session and mirror it onto the catalog entry
        used for quick listing. Unknown project ids only touch the session.
        """
        self.save_progress(project_id, word_index)

        def mirror(records: List[ProjectMetadata]) -> bool:
            for record in records:
                if record.id == project_id:
                    record.current_word_index = word_index
                    return True
            return False

        self.projects.modify(mirror)

    # endregion

    def _merge_session(
        self,
        project_id: str,
        apply: Callable[[Optional[ProjectSession]], ProjectSession],
    ) -> None:
        def merge(records: List[ProjectSession]) -> bool:
            for idx, existing in enumerate(records):
                if existing.project_id == project_id:
                    records[idx] = apply(existing)
                    return True
            records.append(apply(None))
            return True

        self.sessions.modify(merge)


def _check_word_index(word_index: int) -> None:
    if word_index < 0:
        raise InvalidInputError(f"word_index must be non-negative, got {word_index}")
