from __future__ import annotations

from store.db import Database


def record_sync_run(
    db: Database,
    *,
    trigger: str,
    started_at: str,
    finished_at: str,
    discovered: int,
    inserted: int,
    updated: int,
    skipped: int,
    failed: int,
    error: str | None,
) -> int:
    with db.lock:
        cur = db.conn.execute(
            """
            INSERT INTO sync_runs(
              trigger, started_at, finished_at,
              discovered, inserted, updated, skipped, failed, error
            )
            VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                trigger,
                started_at,
                finished_at,
                discovered,
                inserted,
                updated,
                skipped,
                failed,
                error,
            ),
        )
        db.conn.commit()
    return int(cur.lastrowid)


def recent_sync_runs(db: Database, *, limit: int = 20) -> list[dict]:
    with db.lock:
        rows = db.conn.execute(
            """
            SELECT run_id, trigger, started_at, finished_at,
                   discovered, inserted, updated, skipped, failed, error
            FROM sync_runs
            ORDER BY run_id DESC
            LIMIT ?;
            """,
            (limit,),
        ).fetchall()
    return [{k: r[k] for k in r.keys()} for r in rows]
