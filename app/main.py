from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import UTC, datetime, timedelta

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.logs import configure_logging, get_logger
from app.settings import Settings
from health.health import recent_sync_runs
from ingest.scheduler import Syncer, run_scheduler
from normalize.normalize import to_utc_iso
from store.db import Database, close_database, open_database
from store.outbreaks import find_by_alert_id, list_outbreaks


logger = get_logger(__name__)


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_since_hours(value: str | None) -> int | None:
    """None means "no filter"; raises ValueError for anything but a positive integer."""
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not value.isdigit():
        raise ValueError(value)
    hours = int(value)
    if hours <= 0:
        raise ValueError(value)
    return hours


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, json_output=settings.log_json)
    db = open_database(settings.db_path)
    app.state.db = db

    async with httpx.AsyncClient(follow_redirects=True) as client:
        syncer = Syncer(settings=settings, db=db, client=client)
        app.state.syncer = syncer
        scheduler_task = asyncio.create_task(
            run_scheduler(settings=settings, syncer=syncer)
        )
        logger.info("app_started", db_path=str(settings.db_path))
        try:
            yield
        finally:
            scheduler_task.cancel()
            with suppress(asyncio.CancelledError):
                await scheduler_task
            close_database(db)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(title="EHV Outbreak Tracker", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_split_csv(settings.cors_origins) or ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/outbreaks")
    def api_outbreaks(
        request: Request,
        since_hours: str | None = Query(default=None, alias="sinceHours"),
    ) -> JSONResponse:
        db: Database = request.app.state.db
        try:
            hours = _parse_since_hours(since_hours)
        except ValueError:
            return JSONResponse(
                {"error": "sinceHours must be a positive integer"}, status_code=400
            )

        since_iso = None
        if hours is not None:
            try:
                since_iso = to_utc_iso(datetime.now(tz=UTC) - timedelta(hours=hours))
            except OverflowError:
                # Window reaches past datetime.min; every dated record qualifies.
                since_iso = to_utc_iso(datetime.min.replace(tzinfo=UTC))
        return JSONResponse(list_outbreaks(db, since_iso=since_iso))

    @app.get("/outbreaks/{alert_id}")
    def api_outbreak(request: Request, alert_id: str) -> JSONResponse:
        db: Database = request.app.state.db
        row = find_by_alert_id(db, alert_id)
        if row is None:
            return JSONResponse({"error": "not_found"}, status_code=404)
        return JSONResponse(row)

    @app.post("/admin/sync-edcc")
    async def api_sync_edcc(request: Request) -> JSONResponse:
        syncer: Syncer = request.app.state.syncer
        try:
            report = await syncer.run(trigger="manual")
        except Exception as e:
            logger.error("manual_sync_failed", error=str(e), exc_info=True)
            return JSONResponse({"error": "sync_failed"}, status_code=500)
        return JSONResponse({"ok": True, "report": report.as_dict()})

    @app.get("/admin/sync-runs")
    def api_sync_runs(
        request: Request, limit: int = Query(default=20, ge=1, le=200)
    ) -> JSONResponse:
        db: Database = request.app.state.db
        syncer: Syncer | None = getattr(request.app.state, "syncer", None)
        return JSONResponse(
            {
                "running": bool(syncer and syncer.running),
                "runs": recent_sync_runs(db, limit=limit),
            }
        )

    return app


app = create_app()
