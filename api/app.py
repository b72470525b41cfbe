from __future__ import annotations

from typing import Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import get_commands
from api.routes.commands import router as commands_router
from speed_reader.commands import LibraryCommands


def create_app(
    commands: Optional[LibraryCommands] = None,
    allowed_origins: Sequence[str] = ("*",),
) -> FastAPI:
    """
    Build the bridge the webview shell invokes commands through.

    Passing ``commands`` pins the app to one library instance (tests, an
    embedding host); otherwise it is built lazily from the environment.
    """
    app = FastAPI(title="Speed Reader Command Bridge", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(allowed_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(commands_router)

    if commands is not None:
        app.dependency_overrides[get_commands] = lambda: commands

    @app.get("/healthz")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
