from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

import httpx

from app.logs import get_logger
from app.settings import Settings
from health.health import record_sync_run
from ingest.fetch import fetch_page
from ingest.parsers.edcc_alert import parse_alert_html
from ingest.parsers.edcc_listing import parse_alert_links
from normalize.normalize import utc_now_iso
from store.db import Database
from store.outbreaks import OutbreakRecord, UpsertOutcome, upsert_outbreak


logger = get_logger(__name__)


@dataclass
class SyncReport:
    trigger: str
    started_at: str
    finished_at: str | None = None
    discovered: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    error: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


async def discover_alert_urls(
    client: httpx.AsyncClient, *, settings: Settings
) -> list[str]:
    html = await fetch_page(
        client,
        url=str(settings.edcc_listing_url),
        user_agent=settings.user_agent,
        timeout_seconds=settings.fetch_timeout_seconds,
    )
    return parse_alert_links(
        html,
        base_url=settings.edcc_base_url,
        marker=settings.edcc_alert_link_marker,
        limit=settings.sync_batch_size,
    )


async def fetch_alert(
    client: httpx.AsyncClient, *, url: str, settings: Settings
) -> OutbreakRecord:
    html = await fetch_page(
        client,
        url=url,
        user_agent=settings.user_agent,
        timeout_seconds=settings.fetch_timeout_seconds,
    )
    return parse_alert_html(html, source_url=url)


async def _sync_one(
    client: httpx.AsyncClient,
    *,
    url: str,
    settings: Settings,
    db: Database,
    sem: asyncio.Semaphore,
) -> UpsertOutcome | None:
    async with sem:
        try:
            record = await fetch_alert(client, url=url, settings=settings)
            if not record.alert_id:
                logger.warning("alert_missing_id", url=url)
                return UpsertOutcome.SKIPPED
            outcome = upsert_outbreak(db, record)
        except Exception as e:
            logger.error("alert_sync_failed", url=url, error=str(e), exc_info=True)
            return None

    logger.info(
        "alert_synced",
        url=url,
        alert_id=record.alert_id,
        outcome=str(outcome),
        county=record.county,
        state=record.state,
    )
    return outcome


def _finish(db: Database, report: SyncReport) -> SyncReport:
    report.finished_at = utc_now_iso()
    record_sync_run(
        db,
        trigger=report.trigger,
        started_at=report.started_at,
        finished_at=report.finished_at,
        discovered=report.discovered,
        inserted=report.inserted,
        updated=report.updated,
        skipped=report.skipped,
        failed=report.failed,
        error=report.error,
    )
    logger.info("sync_finished", **report.as_dict())
    return report


async def run_sync(
    client: httpx.AsyncClient,
    *,
    settings: Settings,
    db: Database,
    trigger: str = "manual",
) -> SyncReport:
    """One pass: discover alert URLs, then fetch, extract and upsert each one.

    A discovery failure ends the pass before the store is touched. Failures for
    a single URL are logged and counted; the rest of the batch still runs.
    """
    report = SyncReport(trigger=trigger, started_at=utc_now_iso())
    logger.info("sync_started", trigger=trigger, listing_url=settings.edcc_listing_url)

    try:
        urls = await discover_alert_urls(client, settings=settings)
    except Exception as e:
        logger.error(
            "discovery_failed",
            listing_url=settings.edcc_listing_url,
            error=str(e),
            exc_info=True,
        )
        report.error = f"discovery_failed:{e}"
        return _finish(db, report)

    report.discovered = len(urls)
    sem = asyncio.Semaphore(settings.sync_concurrency)
    outcomes = await asyncio.gather(
        *(
            _sync_one(client, url=url, settings=settings, db=db, sem=sem)
            for url in urls
        )
    )
    for outcome in outcomes:
        if outcome is None:
            report.failed += 1
        elif outcome is UpsertOutcome.INSERTED:
            report.inserted += 1
        elif outcome is UpsertOutcome.UPDATED:
            report.updated += 1
        else:
            report.skipped += 1

    return _finish(db, report)


class Syncer:
    """Single entry point for sync passes; the startup pass, the hourly timer
    and the admin endpoint all go through :meth:`run`, which never lets two
    passes overlap."""

    def __init__(
        self, *, settings: Settings, db: Database, client: httpx.AsyncClient
    ) -> None:
        self._settings = settings
        self._db = db
        self._client = client
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run(self, *, trigger: str) -> SyncReport:
        async with self._lock:
            return await run_sync(
                self._client, settings=self._settings, db=self._db, trigger=trigger
            )


def seconds_until_next_run(now: datetime, interval_seconds: int) -> float:
    # 3600 lands on the top of every hour (UTC).
    return interval_seconds - (now.timestamp() % interval_seconds)


async def _run_guarded(syncer: Syncer, *, trigger: str) -> None:
    try:
        await syncer.run(trigger=trigger)
    except Exception as e:
        logger.error("sync_pass_failed", trigger=trigger, error=str(e), exc_info=True)


async def run_scheduler(*, settings: Settings, syncer: Syncer) -> None:
    if settings.sync_on_startup:
        await _run_guarded(syncer, trigger="startup")
    while True:
        delay = seconds_until_next_run(
            datetime.now(tz=UTC), settings.sync_interval_seconds
        )
        logger.debug("sync_scheduled", in_seconds=round(delay, 1))
        await asyncio.sleep(delay)
        await _run_guarded(syncer, trigger="scheduled")
