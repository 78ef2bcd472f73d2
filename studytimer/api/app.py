"""
FastAPI application — local study timer API.
Runs on http://127.0.0.1:8740 by default.

The timer, its tick loop and the session store live on app.state so that
each call to create_app() produces a fully independent instance with no
shared module-level globals. This makes test isolation straightforward.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..actions.notifications import DesktopNotifier, NotificationSink
from ..config import config
from ..sessions.store import SessionStore
from ..timer.clock import StudyTimer
from ..timer.runner import TimerRunner
from ..timer.state import LocalStorage


def create_app(
    data_dir: Optional[Path] = None,
    notifier: Optional[NotificationSink] = None,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        base = Path(data_dir) if data_dir is not None else config.data_dir
        base.mkdir(parents=True, exist_ok=True)

        app.state.sessions = SessionStore(base / config.sessions_db)
        app.state.timer = StudyTimer(
            LocalStorage(base / config.local_storage_file),
            notifier=notifier if notifier is not None else DesktopNotifier(),
        )
        app.state.timer.restore()

        runner = TimerRunner(app.state.timer)
        runner.start()
        app.state.runner = runner

        yield

        await runner.stop()

    app = FastAPI(
        title="Study Timer",
        description="Local study-session timer with segment tracking and session log",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import sessions, settings, timer

    app.include_router(timer.router)
    app.include_router(sessions.router)
    app.include_router(settings.router)

    @app.get("/health")
    def health(request: Request):
        runner = getattr(request.app.state, "runner", None)
        return {
            "status": "ok",
            "version": "0.1.0",
            "ticking": bool(runner and runner.running),
        }

    return app


app = create_app()
