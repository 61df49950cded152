import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from store.db import Database
from store.outbreaks import (
    OutbreakRecord,
    UpsertOutcome,
    find_by_alert_id,
    list_outbreaks,
    upsert_outbreak,
)


def _count(db: Database) -> int:
    with db.lock:
        return int(db.conn.execute("SELECT COUNT(*) AS n FROM outbreaks;").fetchone()["n"])


def _record(**overrides) -> OutbreakRecord:
    base = OutbreakRecord(
        alert_id="12345",
        outbreak_identifier="987",
        disease="Equine Herpesvirus- Neurologic",
        category="Neurologic",
        state="OK",
        county="Payne County",
        date_label="November 28, 2025",
        reported_at_utc="2025-11-28T00:00:00Z",
        status="Confirmed Case(s) - Official Quarantine",
        source="State Vet",
        num_confirmed=2,
        comments="Quarantine in place",
        raw_text="...",
        lat=36.1156,
        lng=-97.0584,
    )
    return replace(base, **overrides)


def test_upsert_inserts_then_updates(db: Database) -> None:
    assert upsert_outbreak(db, _record()) is UpsertOutcome.INSERTED
    assert upsert_outbreak(db, _record(num_confirmed=5, status="Outbreak Update")) is (
        UpsertOutcome.UPDATED
    )

    assert _count(db) == 1
    row = find_by_alert_id(db, "12345")
    assert row is not None
    assert row["num_confirmed"] == 5
    assert row["status"] == "Outbreak Update"
    assert row["county"] == "Payne County"


def test_upsert_replaces_with_nulls(db: Database) -> None:
    upsert_outbreak(db, _record())
    upsert_outbreak(db, _record(comments=None, lat=None, lng=None, num_confirmed=None))

    row = find_by_alert_id(db, "12345")
    assert row is not None
    assert row["comments"] is None
    assert row["lat"] is None and row["lng"] is None
    assert row["num_confirmed"] is None


def test_upsert_keeps_first_seen_at(db: Database) -> None:
    upsert_outbreak(db, _record())
    first = find_by_alert_id(db, "12345")
    upsert_outbreak(db, _record(status="Quarantine Released"))
    second = find_by_alert_id(db, "12345")

    assert first is not None and second is not None
    assert second["first_seen_at"] == first["first_seen_at"]
    assert second["last_seen_at"] >= first["last_seen_at"]
    assert second["id"] == first["id"]


def test_upsert_without_alert_id_is_a_noop(db: Database) -> None:
    upsert_outbreak(db, _record())
    before = find_by_alert_id(db, "12345")

    assert upsert_outbreak(db, _record(alert_id=None)) is UpsertOutcome.SKIPPED
    assert upsert_outbreak(db, _record(alert_id="")) is UpsertOutcome.SKIPPED

    assert _count(db) == 1
    assert find_by_alert_id(db, "12345") == before


def test_find_by_alert_id_missing(db: Database) -> None:
    assert find_by_alert_id(db, "nope") is None


def test_list_outbreaks_orders_and_filters(db: Database) -> None:
    upsert_outbreak(db, _record(alert_id="1", reported_at_utc="2025-11-01T00:00:00Z"))
    upsert_outbreak(db, _record(alert_id="2", reported_at_utc="2025-11-28T00:00:00Z"))
    upsert_outbreak(db, _record(alert_id="3", date_label=None, reported_at_utc=None))

    rows = list_outbreaks(db)
    assert [r["alert_id"] for r in rows] == ["2", "1", "3"]

    recent = list_outbreaks(db, since_iso="2025-11-15T00:00:00Z")
    assert [r["alert_id"] for r in recent] == ["2"]


def test_concurrent_upserts_of_one_alert_leave_one_candidate(db: Database) -> None:
    candidates = [
        _record(num_confirmed=2, status="Confirmed Case(s)", source="State Vet"),
        _record(num_confirmed=9, status="Outbreak Update", source="Private Vet"),
    ]
    barrier = threading.Barrier(len(candidates))

    def write(record: OutbreakRecord) -> UpsertOutcome:
        barrier.wait()
        return upsert_outbreak(db, record)

    with ThreadPoolExecutor(max_workers=len(candidates)) as pool:
        outcomes = list(pool.map(write, candidates))

    assert sorted(outcomes) == sorted([UpsertOutcome.INSERTED, UpsertOutcome.UPDATED])
    assert _count(db) == 1
    row = find_by_alert_id(db, "12345")
    assert row is not None
    stored = (row["num_confirmed"], row["status"], row["source"])
    assert stored in [(c.num_confirmed, c.status, c.source) for c in candidates]


def test_schema_has_bookkeeping_columns_without_alter_migration(db: Database) -> None:
    with db.lock:
        columns = {
            r["name"] for r in db.conn.execute("PRAGMA table_info(outbreaks);").fetchall()
        }
        version = db.conn.execute(
            "SELECT MAX(version) AS v FROM schema_migrations;"
        ).fetchone()["v"]

    assert {"source_url", "first_seen_at", "last_seen_at"} <= columns
    assert version == 2
