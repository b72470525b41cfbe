import json
import threading
from datetime import datetime, timezone

import pytest

from speed_reader.library import (
    CORRUPT_POLICY_RAISE,
    DocumentCorruptError,
    InvalidInputError,
    LocalLibraryStorage,
    PersistenceEngine,
    ProjectMetadata,
    ProjectSession,
    ProjectSettings,
    SerializationError,
    StoragePaths,
)


@pytest.fixture
def storage(tmp_path):
    return LocalLibraryStorage(StoragePaths(tmp_path / "data"))


@pytest.fixture
def engine(storage):
    return PersistenceEngine(storage)


def make_metadata(project_id="p-1", **overrides):
    values = dict(
        id=project_id,
        filename="book.txt",
        saved_path=f"/data/files/{project_id}_book.txt",
        total_words=120,
        current_word_index=0,
        created_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return ProjectMetadata(**values)


def test_missing_documents_load_empty(engine):
    assert engine.load_projects() == []
    assert engine.load_sessions() == []
    assert engine.load_progress("p-1") is None
    assert engine.load_settings("p-1") is None


def test_upsert_project_appends_then_replaces(engine):
    engine.upsert_project(make_metadata("p-1"))
    engine.upsert_project(make_metadata("p-2", filename="other.txt"))
    engine.upsert_project(make_metadata("p-1", current_word_index=42))

    projects = engine.load_projects()
    assert [p.id for p in projects] == ["p-1", "p-2"]
    assert projects[0].current_word_index == 42
    assert projects[1].filename == "other.txt"


def test_upsert_project_is_idempotent(engine, storage):
    metadata = make_metadata()
    engine.upsert_project(metadata)
    first = storage.paths.projects_path().read_text(encoding="utf-8")
    engine.upsert_project(metadata)
    second = storage.paths.projects_path().read_text(encoding="utf-8")

    assert first == second
    assert engine.load_projects() == [metadata]


def test_projects_document_is_pretty_printed_rfc3339(engine, storage):
    engine.upsert_project(make_metadata())
    text = storage.paths.projects_path().read_text(encoding="utf-8")
    assert text.startswith("[\n  {")
    payload = json.loads(text)
    assert payload[0]["created_at"] == "2024-05-01T12:30:00+00:00"


def test_get_project(engine):
    engine.upsert_project(make_metadata("p-1"))
    assert engine.get_project("p-1").filename == "book.txt"
    assert engine.get_project("missing") is None


def test_save_progress_creates_session_with_default_settings(engine):
    engine.save_progress("p-1", 2)

    assert engine.load_progress("p-1") == 2
    assert engine.load_settings("p-1") == ProjectSettings()
    session = engine.get_session("p-1")
    assert session.session_id == "p-1_session"


def test_save_settings_creates_session_at_word_zero(engine):
    settings = ProjectSettings(time_per_word=80, highlight_orp=False)
    engine.save_settings("p-1", settings)

    assert engine.load_settings("p-1") == settings
    assert engine.load_progress("p-1") == 0


def test_progress_preserves_settings_and_vice_versa(engine):
    settings = ProjectSettings(chunk_size=3, letter_spacing=1.5)
    engine.save_settings("p-1", settings)
    engine.save_progress("p-1", 17)
    assert engine.load_settings("p-1") == settings

    engine.save_settings("p-1", ProjectSettings(skill_level=4))
    assert engine.load_progress("p-1") == 17
    assert len(engine.load_sessions()) == 1


def test_progress_updates_last_read_date(engine):
    engine.save_progress("p-1", 1)
    before = engine.get_session("p-1").last_read_date
    engine.save_progress("p-1", 5)
    assert engine.get_session("p-1").last_read_date >= before


def test_sessions_do_not_require_catalog_entry(engine):
    engine.save_progress("ghost", 3)
    assert engine.load_projects() == []
    assert engine.load_progress("ghost") == 3


def test_save_progress_rejects_negative_index(engine):
    with pytest.raises(InvalidInputError):
        engine.save_progress("p-1", -1)


def test_settings_are_stored_verbatim(engine, storage):
    settings = ProjectSettings.from_dict({"time_per_word": -5, "chunk_size": 999, "font_family": "serif"})
    engine.save_settings("p-1", settings)

    loaded = engine.load_settings("p-1")
    assert loaded.time_per_word == -5
    assert loaded.chunk_size == 999
    assert loaded.to_dict()["font_family"] == "serif"
    raw = json.loads(storage.paths.sessions_path().read_text(encoding="utf-8"))
    assert raw[0]["settings"]["font_family"] == "serif"


def test_partial_settings_fall_back_to_defaults(engine, storage):
    storage.paths.root.mkdir(parents=True)
    storage.paths.sessions_path().write_text(
        json.dumps(
            [
                {
                    "session_id": "p-1_session",
                    "project_id": "p-1",
                    "current_word_index": 9,
                    "last_read_date": "2024-05-01T12:30:00.123456789+00:00",
                    "settings": {"time_per_word": 60},
                }
            ]
        ),
        encoding="utf-8",
    )
    settings = engine.load_settings("p-1")
    assert settings.time_per_word == 60
    assert settings.trail_words_count == ProjectSettings().trail_words_count
    assert engine.load_progress("p-1") == 9


def test_update_project_progress_mirrors_catalog(engine):
    engine.upsert_project(make_metadata("p-1"))
    engine.update_project_progress("p-1", 33)

    assert engine.get_project("p-1").current_word_index == 33
    assert engine.load_progress("p-1") == 33


def test_update_project_progress_unknown_project_only_touches_session(engine, storage):
    engine.update_project_progress("ghost", 4)
    assert engine.load_progress("ghost") == 4
    assert not storage.paths.projects_path().exists()


def test_corrupt_document_loads_empty_and_is_preserved(engine, storage):
    storage.paths.root.mkdir(parents=True)
    storage.paths.projects_path().write_text("{not json", encoding="utf-8")

    assert engine.load_projects() == []

    engine.upsert_project(make_metadata("p-1"))
    assert [p.id for p in engine.load_projects()] == ["p-1"]
    preserved = list(storage.paths.root.glob("projects.json.corrupt-*"))
    assert len(preserved) == 1
    assert preserved[0].read_text(encoding="utf-8") == "{not json"


def test_repeated_corruption_keeps_every_preserved_copy(engine, storage):
    storage.paths.root.mkdir(parents=True)
    storage.paths.projects_path().write_text("first broken", encoding="utf-8")
    engine.upsert_project(make_metadata("p-1"))
    storage.paths.projects_path().write_text("second broken", encoding="utf-8")
    engine.upsert_project(make_metadata("p-2"))

    preserved = sorted(p.read_text(encoding="utf-8") for p in storage.paths.root.glob("projects.json.corrupt-*"))
    assert preserved == ["first broken", "second broken"]
    assert [p.id for p in engine.load_projects()] == ["p-2"]


def test_out_of_range_numbers_are_treated_as_corrupt(engine, storage):
    storage.paths.root.mkdir(parents=True)
    record = make_metadata().to_dict()
    storage.paths.projects_path().write_text(
        json.dumps([record]).replace('"total_words": 120', '"total_words": 1e400'),
        encoding="utf-8",
    )

    assert engine.load_projects() == []
    engine.upsert_project(make_metadata("p-2"))
    assert [p.id for p in engine.load_projects()] == ["p-2"]


def test_deeply_nested_document_is_treated_as_corrupt(engine, storage):
    storage.paths.root.mkdir(parents=True)
    storage.paths.sessions_path().write_text("[" * 200000, encoding="utf-8")

    assert engine.load_sessions() == []
    engine.save_progress("p-1", 3)
    assert engine.load_progress("p-1") == 3
    assert len(list(storage.paths.root.glob("sessions.json.corrupt-*"))) == 1


def test_out_of_range_numbers_raise_in_fail_closed_mode(storage):
    engine = PersistenceEngine(storage, corrupt_policy=CORRUPT_POLICY_RAISE)
    storage.paths.root.mkdir(parents=True)
    storage.paths.sessions_path().write_text(
        json.dumps([{"project_id": "p-1", "current_word_index": 1e400, "last_read_date": "2024-05-01T00:00:00Z"}]),
        encoding="utf-8",
    )
    with pytest.raises(DocumentCorruptError):
        engine.load_sessions()


def test_wrong_shape_document_is_treated_as_corrupt(engine, storage):
    storage.paths.root.mkdir(parents=True)
    storage.paths.sessions_path().write_text(json.dumps({"project_id": "p-1"}), encoding="utf-8")
    assert engine.load_sessions() == []

    storage.paths.sessions_path().write_text(json.dumps([{"project_id": "p-1"}]), encoding="utf-8")
    assert engine.load_progress("p-1") is None


def test_fail_closed_policy_raises_and_keeps_document(storage):
    engine = PersistenceEngine(storage, corrupt_policy=CORRUPT_POLICY_RAISE)
    storage.paths.root.mkdir(parents=True)
    storage.paths.projects_path().write_text("[{]", encoding="utf-8")

    with pytest.raises(DocumentCorruptError):
        engine.load_projects()
    with pytest.raises(DocumentCorruptError):
        engine.upsert_project(make_metadata())
    assert storage.paths.projects_path().read_text(encoding="utf-8") == "[{]"


def test_unserializable_settings_surface_on_write(engine, storage):
    engine.save_progress("p-1", 1)
    before = storage.paths.sessions_path().read_text(encoding="utf-8")

    with pytest.raises(SerializationError):
        engine.save_settings("p-1", ProjectSettings(extra={"bad": object()}))
    assert storage.paths.sessions_path().read_text(encoding="utf-8") == before


def test_writes_leave_no_temp_files(engine, storage):
    engine.upsert_project(make_metadata())
    engine.save_progress("p-1", 1)
    names = sorted(p.name for p in storage.paths.root.iterdir())
    assert names == ["projects.json", "sessions.json"]


def test_upsert_session_keyed_by_project_id(engine):
    engine.upsert_session(ProjectSession.new("p-1", current_word_index=5))
    engine.upsert_session(ProjectSession.new("p-1", current_word_index=8))
    sessions = engine.load_sessions()
    assert len(sessions) == 1
    assert sessions[0].current_word_index == 8


def test_concurrent_progress_saves_keep_every_project(engine):
    errors = []

    def save(project_id):
        try:
            for idx in range(10):
                engine.save_progress(project_id, idx)
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=save, args=(f"p-{n}",)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    sessions = {s.project_id: s.current_word_index for s in engine.load_sessions()}
    assert sessions == {f"p-{n}": 9 for n in range(8)}
