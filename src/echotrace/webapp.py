"""FastAPI application that hosts the accumulator and exposes its commands."""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Literal, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict

from .accumulator import SessionAccumulator, get_stats, reset_data, toggle_tracking
from .config import TrackerSettings
from .db import StatsStore, StorageError
from .export import export_filename, render_export
from .models import local_now
from .paths import get_db_path

logger = logging.getLogger(__name__)


class TickRunner:
    """Fire the accumulator's periodic tick from a background thread."""

    def __init__(self, accumulator: SessionAccumulator, settings: TrackerSettings) -> None:
        self._accumulator = accumulator
        self._settings = settings
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="echotrace-tick",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info(
                "Tick thread started; interval %.0fs",
                self._settings.tick_interval.total_seconds(),
            )

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=10)
            logger.info("Tick thread stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def _run(self, stop_event: threading.Event) -> None:
        interval = self._settings.tick_interval.total_seconds()
        # Sleep in an interruptible manner.
        while not stop_event.wait(interval):
            try:
                self._accumulator.tick()
            except StorageError:
                logger.exception("Periodic flush failed; retrying on the next tick.")


class TrackingToggle(BaseModel):
    enabled: bool

    model_config = ConfigDict(extra="forbid")


class TabEvent(BaseModel):
    tab_id: int
    url: Optional[str] = None


class TabRemovedEvent(BaseModel):
    tab_id: int


class IdleEvent(BaseModel):
    state: Literal["active", "idle", "locked"]


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    clock: Callable[[], datetime] = local_now,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_settings = settings or TrackerSettings()
    store = StatsStore(resolved_db_path)
    accumulator = SessionAccumulator(store, clock=clock)
    runner = TickRunner(accumulator, resolved_settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        runner.start()
        try:
            yield
        finally:
            runner.stop()
            try:
                accumulator.shutdown()
            except StorageError:
                logger.exception("Failed to flush the open session on shutdown.")

    app = FastAPI(title="EchoTrace", version="0.1.0", lifespan=lifespan)
    app.state.db_path = resolved_db_path
    app.state.accumulator = accumulator
    app.state.tick_runner = runner

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {
            "tick_running": request.app.state.tick_runner.is_running(),
            "database_path": str(request.app.state.db_path),
            "tick_minutes": resolved_settings.tick_interval.total_seconds() / 60.0,
            "tracking": request.app.state.accumulator.state.to_payload(),
        }

    @app.get("/api/stats")
    def stats(request: Request) -> Response:
        return _respond(get_stats(request.app.state.accumulator))

    @app.post("/api/tracking")
    def tracking(payload: TrackingToggle, request: Request) -> Response:
        return _respond(toggle_tracking(request.app.state.accumulator, payload.enabled))

    @app.post("/api/reset")
    def reset(request: Request) -> Response:
        return _respond(reset_data(request.app.state.accumulator))

    @app.get("/api/export")
    def export(request: Request) -> Response:
        try:
            snapshot = request.app.state.accumulator.store.query()
        except StorageError as exc:
            logger.exception("Failed to export stats")
            return _respond({"success": False, "error": str(exc)})
        filename = export_filename(clock().date())
        return Response(
            content=render_export(snapshot),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/api/events/tab-activated")
    def tab_activated(event: TabEvent, request: Request) -> Response:
        return _handle_event(
            request.app.state.accumulator.tab_activated, event.tab_id, event.url
        )

    @app.post("/api/events/tab-updated")
    def tab_updated(event: TabEvent, request: Request) -> Response:
        return _handle_event(
            request.app.state.accumulator.tab_updated, event.tab_id, event.url
        )

    @app.post("/api/events/tab-removed")
    def tab_removed(event: TabRemovedEvent, request: Request) -> Response:
        return _handle_event(request.app.state.accumulator.tab_removed, event.tab_id)

    @app.post("/api/events/idle")
    def idle(event: IdleEvent, request: Request) -> Response:
        return _handle_event(request.app.state.accumulator.idle_state_changed, event.state)

    return app


def _handle_event(handler: Callable[..., None], *args: Any) -> Response:
    try:
        handler(*args)
    except StorageError as exc:
        logger.exception("Failed to handle %s", handler.__name__)
        return _respond({"success": False, "error": str(exc)})
    return _respond({"success": True})


def _respond(payload: Dict[str, Any]) -> Response:
    status_code = 503 if payload.get("success") is False else 200
    return JSONResponse(content=payload, status_code=status_code)
