from __future__ import annotations

from functools import lru_cache

from speed_reader.commands import LibraryCommands
from speed_reader.library import EngineConfig


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    return EngineConfig.from_env()


@lru_cache(maxsize=1)
def get_commands() -> LibraryCommands:
    return LibraryCommands.from_config(get_config())
