from __future__ import annotations

from pathlib import Path

import pytest

from core.database import PooledAggregateStore, SQLiteAggregateStore


class FakeScorer:
    """Scores by exact text lookup; unknown text is neutral."""

    def __init__(self, scores: dict[str, float] | None = None):
        self.scores = dict(scores or {})
        self.seen: list[str] = []

    def score(self, text: str) -> float:
        self.seen.append(text)
        return float(self.scores.get(text, 0.0))


def _write_csv(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def write_csv():
    return _write_csv


@pytest.fixture
def make_scorer():
    return FakeScorer


@pytest.fixture
def fake_scorer() -> FakeScorer:
    return FakeScorer(
        {
            "I love this": 0.8,
            "I hate this": -0.8,
        }
    )


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteAggregateStore(tmp_path / "db" / "aggregates.db")
    store.open()
    yield store
    store.close()


@pytest.fixture
def pooled_store(tmp_path):
    store = PooledAggregateStore(f"sqlite:///{tmp_path / 'pooled.db'}")
    store.open()
    yield store
    store.close()


@pytest.fixture(params=["sqlite", "pool"])
def any_store(request, sqlite_store, pooled_store):
    return sqlite_store if request.param == "sqlite" else pooled_store
