"""
Aggregate store for pulseboard

Two interchangeable backends behind one contract:

- ``SQLiteAggregateStore``: embedded file store for single-node / dev use.
- ``PooledAggregateStore``: SQLAlchemy connection pool for a networked
  relational database (MySQL in production).

The backend is chosen once by ``create_store`` at composition time.
"""

import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional
import logging

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import Config
from core.errors import StorageError
from sentiment.histogram import BUCKET_COLUMNS, validate_counts

logger = logging.getLogger("pulseboard.database")

TABLE_NAME = "sentiment_aggregates"

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_title TEXT NOT NULL,
    {", ".join(f"{col} INTEGER NOT NULL DEFAULT 0" for col in BUCKET_COLUMNS)}
);
"""

_INSERT_SQL = (
    f"INSERT INTO {TABLE_NAME} (project_title, {', '.join(BUCKET_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in range(len(BUCKET_COLUMNS) + 1))})"
)


@dataclass(frozen=True)
class AggregateRecord:
    """One completed ingestion: title plus 11 bucket counts"""

    id: int
    project_title: str
    histogram: tuple[int, ...]

    @property
    def total(self) -> int:
        return sum(self.histogram)

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {"id": self.id, "project_title": self.project_title}
        row.update(zip(BUCKET_COLUMNS, self.histogram))
        return row

    @classmethod
    def from_row(cls, row: Any) -> "AggregateRecord":
        return cls(
            id=int(row["id"]),
            project_title=str(row["project_title"]),
            histogram=tuple(int(row[col]) for col in BUCKET_COLUMNS),
        )


def _clean_title(project_title: str) -> str:
    title = str(project_title or "").strip()
    return title or "New Analysis"


class AggregateStore(ABC):
    """Durable keyed storage for completed histograms"""

    backend_name = "abstract"

    @abstractmethod
    def open(self) -> None:
        """Create the aggregate table if needed and accept requests"""

    @abstractmethod
    def close(self) -> None:
        """Release connections; the store must be reopened before reuse"""

    @abstractmethod
    def insert(self, project_title: str, histogram: Iterable[int]) -> int:
        """Create one record and return its store-assigned id"""

    @abstractmethod
    def get_by_id(self, record_id: int) -> Optional[AggregateRecord]:
        """Return the record or None when the id is unknown"""

    def __enter__(self) -> "AggregateStore":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class SQLiteAggregateStore(AggregateStore):
    """SQLite store; the whole database is one portable file"""

    backend_name = "sqlite"

    def __init__(self, db_path: Optional[Path] = None, timeout: float = 30.0):
        if db_path is None:
            db_path = Path("~/pulseboard_data/db/pulseboard.db").expanduser()

        self.db_path = Path(db_path)
        self.timeout = timeout
        self._opened = False
        self._lock = threading.Lock()

    def open(self) -> None:
        """Initialize database with schema"""
        with self._lock:
            if self._opened:
                return
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                with self.get_connection() as conn:
                    conn.executescript(SCHEMA)
                    conn.commit()
            except (sqlite3.Error, OSError) as exc:
                raise StorageError(f"Could not open SQLite store at {self.db_path}: {exc}") from exc
            self._opened = True
        logger.info(f"SQLite aggregate store ready at {self.db_path}")

    def close(self) -> None:
        self._opened = False

    @contextmanager
    def get_connection(self):
        """Get database connection context manager"""
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _require_open(self) -> None:
        if not self._opened:
            raise StorageError("SQLite store is not open")

    def insert(self, project_title: str, histogram: Iterable[int]) -> int:
        counts = validate_counts(histogram)
        self._require_open()
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(_INSERT_SQL, (_clean_title(project_title), *counts))
                conn.commit()
                return int(cursor.lastrowid)
        except sqlite3.Error as exc:
            raise StorageError(f"Database persistence error: {exc}") from exc

    def get_by_id(self, record_id: int) -> Optional[AggregateRecord]:
        self._require_open()
        try:
            with self.get_connection() as conn:
                row = conn.execute(
                    f"SELECT * FROM {TABLE_NAME} WHERE id = ?", (int(record_id),)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Query error: {exc}") from exc
        return AggregateRecord.from_row(row) if row else None


_metadata = MetaData()

aggregates_table = Table(
    TABLE_NAME,
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("project_title", String(255), nullable=False),
    *(Column(col, Integer, nullable=False, server_default="0") for col in BUCKET_COLUMNS),
    sqlite_autoincrement=True,
)


class PooledAggregateStore(AggregateStore):
    """Networked relational store over a SQLAlchemy connection pool"""

    backend_name = "pool"

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 5,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
    ):
        if not database_url:
            raise StorageError("A database URL is required for the pooled store")
        self.database_url = database_url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self._engine: Optional[Engine] = None

    def _create_engine(self) -> Engine:
        if self.database_url.startswith("sqlite"):
            return create_engine(
                self.database_url,
                connect_args={"check_same_thread": False},
            )
        return create_engine(
            self.database_url,
            pool_size=self.pool_size,
            max_overflow=self.max_overflow,
            pool_timeout=self.pool_timeout,
            pool_recycle=self.pool_recycle,
            pool_pre_ping=True,
        )

    def open(self) -> None:
        if self._engine is not None:
            return
        try:
            engine = self._create_engine()
            _metadata.create_all(engine, tables=[aggregates_table])
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not open pooled store: {exc}") from exc
        self._engine = engine
        logger.info("Pooled aggregate store ready (%s)", engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StorageError("Pooled store is not open")
        return self._engine

    def insert(self, project_title: str, histogram: Iterable[int]) -> int:
        counts = validate_counts(histogram)
        values = {"project_title": _clean_title(project_title)}
        values.update(zip(BUCKET_COLUMNS, counts))
        try:
            with self.engine.begin() as conn:
                result = conn.execute(aggregates_table.insert().values(**values))
                return int(result.inserted_primary_key[0])
        except SQLAlchemyError as exc:
            raise StorageError(f"Database persistence error: {exc}") from exc

    def get_by_id(self, record_id: int) -> Optional[AggregateRecord]:
        stmt = select(aggregates_table).where(aggregates_table.c.id == int(record_id))
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as exc:
            raise StorageError(f"Query error: {exc}") from exc
        return AggregateRecord.from_row(row) if row else None


def create_store(config: Config) -> AggregateStore:
    """Build the configured backend; the caller owns open/close"""
    store_cfg = config.store
    if store_cfg.backend == "pool":
        return PooledAggregateStore(
            store_cfg.database_url,
            pool_size=store_cfg.pool_size,
            max_overflow=store_cfg.max_overflow,
            pool_timeout=store_cfg.pool_timeout,
            pool_recycle=store_cfg.pool_recycle,
        )
    return SQLiteAggregateStore(config.sqlite_path)
