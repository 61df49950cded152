from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Database:
    conn: sqlite3.Connection
    lock: threading.Lock


_MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
          version INTEGER NOT NULL PRIMARY KEY
        );

        CREATE TABLE IF NOT EXISTS outbreaks (
          id INTEGER PRIMARY KEY AUTOINCREMENT,

          alert_id TEXT NOT NULL,
          outbreak_identifier TEXT NULL,

          disease TEXT NULL,
          category TEXT NULL,

          country TEXT NULL,
          state TEXT NULL,
          county TEXT NULL,

          date_label TEXT NULL,
          reported_at_utc TEXT NULL,

          status TEXT NULL,
          source TEXT NULL,
          num_confirmed INTEGER NULL,
          num_suspected INTEGER NULL,
          num_exposed INTEGER NULL,
          num_euthanized INTEGER NULL,
          facility_type TEXT NULL,

          comments TEXT NULL,
          raw_text TEXT NULL,

          lat REAL NULL,
          lng REAL NULL,

          source_url TEXT NULL,
          first_seen_at TEXT NULL,
          last_seen_at TEXT NULL
        );

        CREATE UNIQUE INDEX IF NOT EXISTS outbreaks_alert_id_uq ON outbreaks(alert_id);
        CREATE INDEX IF NOT EXISTS outbreaks_reported_at_idx ON outbreaks(reported_at_utc);
        CREATE INDEX IF NOT EXISTS outbreaks_outbreak_identifier_idx
          ON outbreaks(outbreak_identifier);
        """,
    ),
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS sync_runs (
          run_id INTEGER PRIMARY KEY AUTOINCREMENT,
          trigger TEXT NOT NULL,
          started_at TEXT NOT NULL,
          finished_at TEXT NOT NULL,
          discovered INTEGER NOT NULL DEFAULT 0,
          inserted INTEGER NOT NULL DEFAULT 0,
          updated INTEGER NOT NULL DEFAULT 0,
          skipped INTEGER NOT NULL DEFAULT 0,
          failed INTEGER NOT NULL DEFAULT 0,
          error TEXT NULL
        );

        CREATE INDEX IF NOT EXISTS sync_runs_started_at_idx ON sync_runs(started_at);
        """,
    ),
]


def open_database(path: Path) -> Database:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA busy_timeout=5000;")
    _apply_migrations(conn)
    return Database(conn=conn, lock=threading.Lock())


def close_database(db: Database) -> None:
    with db.lock:
        db.conn.close()


def _apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER NOT NULL PRIMARY KEY);"
    )
    row = conn.execute(
        "SELECT COALESCE(MAX(version), 0) AS v FROM schema_migrations;"
    ).fetchone()
    current_version = int(row["v"])

    for version, sql in _MIGRATIONS:
        if version <= current_version:
            continue
        conn.executescript(sql)
        conn.execute("INSERT INTO schema_migrations(version) VALUES (?);", (version,))
        conn.commit()
