from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from speed_reader.commands import CommandResult, LibraryCommands, to_payload
from speed_reader.library import ProjectMetadata, ProjectSettings

from api.dependencies import get_commands

router = APIRouter(prefix="/commands", tags=["commands"])


class ImportFileRequest(BaseModel):
    original_path: str


class WordBufferRequest(BaseModel):
    path: str
    start_index: int
    buffer_size: Optional[int] = None


class ProjectMetadataBody(BaseModel):
    id: str
    filename: str
    saved_path: str
    total_words: int
    current_word_index: int = 0
    created_at: datetime


class SaveMetadataRequest(BaseModel):
    metadata: ProjectMetadataBody


class ProjectRequest(BaseModel):
    project_id: str


class ProgressRequest(BaseModel):
    project_id: str
    word_index: int


class SaveSettingsRequest(BaseModel):
    project_id: str
    settings: Dict[str, Any]


def _respond(result: CommandResult) -> dict:
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.error)
    return {"result": to_payload(result.value)}


@router.post("/import_file")
async def import_file(body: ImportFileRequest, commands: LibraryCommands = Depends(get_commands)):
    return _respond(await commands.import_file(body.original_path))


@router.post("/load_word_buffer")
async def load_word_buffer(body: WordBufferRequest, commands: LibraryCommands = Depends(get_commands)):
    return _respond(await commands.load_word_buffer(body.path, body.start_index, body.buffer_size))


@router.post("/save_project_metadata")
async def save_project_metadata(body: SaveMetadataRequest, commands: LibraryCommands = Depends(get_commands)):
    metadata = ProjectMetadata(**body.metadata.model_dump())
    return _respond(await commands.save_project_metadata(metadata))


@router.post("/load_projects")
async def load_projects(commands: LibraryCommands = Depends(get_commands)):
    return _respond(await commands.load_projects())


@router.post("/save_session_progress")
async def save_session_progress(body: ProgressRequest, commands: LibraryCommands = Depends(get_commands)):
    return _respond(await commands.save_session_progress(body.project_id, body.word_index))


@router.post("/load_session_progress")
async def load_session_progress(body: ProjectRequest, commands: LibraryCommands = Depends(get_commands)):
    return _respond(await commands.load_session_progress(body.project_id))


@router.post("/save_project_settings")
async def save_project_settings(body: SaveSettingsRequest, commands: LibraryCommands = Depends(get_commands)):
    settings = ProjectSettings.from_dict(body.settings)
    return _respond(await commands.save_project_settings(body.project_id, settings))


@router.post("/load_project_settings")
async def load_project_settings(body: ProjectRequest, commands: LibraryCommands = Depends(get_commands)):
    return _respond(await commands.load_project_settings(body.project_id))


@router.post("/update_project_progress")
async def update_project_progress(body: ProgressRequest, commands: LibraryCommands = Depends(get_commands)):
    return _respond(await commands.update_project_progress(body.project_id, body.word_index))
