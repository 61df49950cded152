from __future__ import annotations

import enum
from dataclasses import asdict, dataclass

from app.logs import get_logger
from normalize.normalize import utc_now_iso
from store.db import Database


logger = get_logger(__name__)

DEFAULT_COUNTRY = "USA"


@dataclass(frozen=True)
class OutbreakRecord:
    alert_id: str | None = None
    outbreak_identifier: str | None = None
    disease: str | None = None
    category: str | None = None
    country: str = DEFAULT_COUNTRY
    state: str | None = None
    county: str | None = None
    date_label: str | None = None
    reported_at_utc: str | None = None
    status: str | None = None
    source: str | None = None
    num_confirmed: int | None = None
    num_suspected: int | None = None
    num_exposed: int | None = None
    num_euthanized: int | None = None
    facility_type: str | None = None
    comments: str | None = None
    raw_text: str = ""
    lat: float | None = None
    lng: float | None = None
    source_url: str | None = None

    def as_row(self) -> dict:
        return asdict(self)


class UpsertOutcome(enum.StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"


# Every record field except alert_id is replaced on conflict, nulls included.
_NON_KEY_COLUMNS = [
    name for name in OutbreakRecord.__dataclass_fields__ if name != "alert_id"
]

_UPSERT_SQL = f"""
    INSERT INTO outbreaks(
      alert_id, {", ".join(_NON_KEY_COLUMNS)}, first_seen_at, last_seen_at
    )
    VALUES(
      :alert_id, {", ".join(f":{c}" for c in _NON_KEY_COLUMNS)}, :seen_at, :seen_at
    )
    ON CONFLICT(alert_id) DO UPDATE SET
      {", ".join(f"{c} = excluded.{c}" for c in _NON_KEY_COLUMNS)},
      last_seen_at = excluded.last_seen_at;
"""


def _row_to_dict(row) -> dict:
    return {k: row[k] for k in row.keys()}


def find_by_alert_id(db: Database, alert_id: str) -> dict | None:
    with db.lock:
        row = db.conn.execute(
            "SELECT * FROM outbreaks WHERE alert_id = ?;", (alert_id,)
        ).fetchone()
    if row is None:
        return None
    return _row_to_dict(row)


def upsert_outbreak(db: Database, record: OutbreakRecord) -> UpsertOutcome:
    if not record.alert_id:
        logger.warning("upsert_skipped_missing_alert_id", source_url=record.source_url)
        return UpsertOutcome.SKIPPED

    params = record.as_row()
    params["seen_at"] = utc_now_iso()
    with db.lock:
        try:
            existing = db.conn.execute(
                "SELECT 1 FROM outbreaks WHERE alert_id = ?;", (record.alert_id,)
            ).fetchone()
            db.conn.execute(_UPSERT_SQL, params)
            db.conn.commit()
        except Exception:
            db.conn.rollback()
            raise
    if existing is None:
        return UpsertOutcome.INSERTED
    return UpsertOutcome.UPDATED


def list_outbreaks(db: Database, *, since_iso: str | None = None) -> list[dict]:
    if since_iso is None:
        sql = """
            SELECT * FROM outbreaks
            ORDER BY reported_at_utc IS NULL, reported_at_utc DESC, id DESC;
        """
        params: tuple = ()
    else:
        sql = """
            SELECT * FROM outbreaks
            WHERE reported_at_utc IS NOT NULL
              AND reported_at_utc >= ?
            ORDER BY reported_at_utc DESC, id DESC;
        """
        params = (since_iso,)
    with db.lock:
        rows = db.conn.execute(sql, params).fetchall()
    return [_row_to_dict(r) for r in rows]
