from datetime import datetime, timezone

import pytest

from cards import lifecycle
from cards.fsrs import database


T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite database file per test."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cards.sqlite'}")
    database.dispose_engine()
    database.init_db()
    yield database
    database.dispose_engine()


@pytest.fixture
def active_card(t0):
    """Accepted card that has never been reviewed."""
    return lifecycle.accept(lifecycle.create("What is stability?", now=t0))
