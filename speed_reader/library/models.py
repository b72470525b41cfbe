from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# chrono-style timestamps can carry nanoseconds; fromisoformat wants at most six digits.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    text = _FRACTION_RE.sub(r"\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def session_id_for(project_id: str) -> str:
    return f"{project_id}_session"


@dataclass
class ProjectSettings:
    """
    Pacing and typography parameters for one project.

    The engine never interprets these values. Missing keys fall back to the
    defaults below and unknown keys ride along in ``extra`` so that a newer
    UI can persist fields this version does not know about.
    """

    time_per_word: float = 35
    time_per_character: float = 25
    highlight_orp: bool = True
    letter_spacing: float = 3.5
    punctuation_delay: float = 50
    trail_words_count: int = 8
    chunk_size: int = 1
    skill_level: int = 1
    normalize_text: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls) if f.name != "extra"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectSettings":
        if not isinstance(data, dict):
            raise ValueError(f"settings must be an object, got {type(data).__name__}")
        known = cls.field_names()
        values = {name: data[name] for name in known if name in data}
        extra = {key: value for key, value in data.items() if key not in known}
        return cls(**values, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.extra)
        for name in self.field_names():
            payload[name] = getattr(self, name)
        return payload


@dataclass
class ProjectMetadata:
    id: str
    filename: str
    saved_path: str
    total_words: int
    current_word_index: int = 0
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectMetadata":
        return cls(
            id=str(data["id"]),
            filename=str(data["filename"]),
            saved_path=str(data["saved_path"]),
            total_words=int(data["total_words"]),
            current_word_index=int(data.get("current_word_index", 0)),
            created_at=parse_timestamp(data["created_at"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "saved_path": self.saved_path,
            "total_words": self.total_words,
            "current_word_index": self.current_word_index,
            "created_at": format_timestamp(self.created_at),
        }


@dataclass
class ProjectSession:
    session_id: str
    project_id: str
    current_word_index: int = 0
    last_read_date: datetime = field(default_factory=utc_now)
    settings: ProjectSettings = field(default_factory=ProjectSettings)

    @classmethod
    def new(
        cls,
        project_id: str,
        current_word_index: int = 0,
        settings: Optional[ProjectSettings] = None,
    ) -> "ProjectSession":
        return cls(
            session_id=session_id_for(project_id),
            project_id=project_id,
            current_word_index=current_word_index,
            last_read_date=utc_now(),
            settings=settings if settings is not None else ProjectSettings(),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectSession":
        project_id = str(data["project_id"])
        raw_settings = data.get("settings")
        return cls(
            session_id=str(data.get("session_id") or session_id_for(project_id)),
            project_id=project_id,
            current_word_index=int(data.get("current_word_index", 0)),
            last_read_date=parse_timestamp(data["last_read_date"]),
            settings=ProjectSettings.from_dict(raw_settings) if raw_settings is not None else ProjectSettings(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "project_id": self.project_id,
            "current_word_index": self.current_word_index,
            "last_read_date": format_timestamp(self.last_read_date),
            "settings": self.settings.to_dict(),
        }
