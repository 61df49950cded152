from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from store.db import Database, close_database, open_database


FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def db(tmp_path: Path) -> Iterator[Database]:
    database = open_database(tmp_path / "test.db")
    try:
        yield database
    finally:
        close_database(database)


@pytest.fixture
def alert_html() -> str:
    return (FIXTURES / "edcc_alert.html").read_text(encoding="utf-8")


@pytest.fixture
def listing_html() -> str:
    return (FIXTURES / "edcc_listing.html").read_text(encoding="utf-8")
