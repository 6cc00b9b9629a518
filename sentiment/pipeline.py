"""
Streaming CSV ingestion: one uploaded file in, one aggregate record out.

Rows are pulled lazily from ``pandas.read_csv(chunksize=...)`` so the
working set is bounded by the chunk size regardless of file length. The
histogram is only handed to the store once the stream is exhausted; any
failure before that point writes nothing.
"""

from __future__ import annotations

import asyncio
import csv
import io
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Iterator, Optional, Union

import pandas as pd

from core.errors import IngestionCancelled, IngestionError, StorageError
from .columns import DEFAULT_TEXT_COLUMN, select_text
from .histogram import Histogram
from .redaction import redact
from .scoring import Scorer, score_text

if TYPE_CHECKING:
    from core.database import AggregateStore

logger = logging.getLogger("pulseboard.pipeline")

CsvSource = Union[str, os.PathLike, IO[bytes], IO[str]]

DEFAULT_PROJECT_TITLE = "New Analysis"

_STREAM_ERRORS = (pd.errors.ParserError, csv.Error, UnicodeDecodeError, OSError, ValueError)


@dataclass
class IngestionOptions:
    text_column: str = DEFAULT_TEXT_COLUMN
    project_title: str = DEFAULT_PROJECT_TITLE

    @classmethod
    def from_params(cls, params: Optional[dict[str, Any]] = None) -> "IngestionOptions":
        params = params or {}
        column = str(params.get("text_column") or cls.text_column).strip() or cls.text_column
        title = str(params.get("project_title") or cls.project_title).strip() or cls.project_title
        return cls(text_column=column, project_title=title)


@dataclass
class IngestionResult:
    id: int
    histogram: list[int]
    project_title: str
    rows: int
    truncated_rows: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "bins": list(self.histogram),
            "project_title": self.project_title,
            "rows": self.rows,
            "truncated_rows": self.truncated_rows,
        }


@dataclass
class _RunState:
    histogram: Histogram = field(default_factory=Histogram)
    truncated_rows: int = 0


class IngestionEngine:
    """Drives normalize -> redact -> score -> bin -> persist for one file at a time."""

    def __init__(self, store: "AggregateStore", scorer: Scorer, chunk_size: int = 1000):
        self.store = store
        self.scorer = scorer
        self.chunk_size = max(int(chunk_size), 1)

    def _iter_rows(self, source: CsvSource, state: _RunState) -> Iterator[dict[str, Any]]:
        """Lazily yield one dict per CSV record, keyed by the header row."""
        header: list[str] = []

        def _truncate_bad_line(bad_line: list[str]) -> list[str]:
            state.truncated_rows += 1
            logger.warning(
                "Row with %d fields truncated to the %d header columns", len(bad_line), len(header)
            )
            return bad_line[: len(header)]

        # header=None keeps the header row as the first record, so its width
        # decides the column count and a wide first data row cannot be taken
        # for an implicit index column
        read_kwargs: dict[str, Any] = {
            "chunksize": self.chunk_size,
            "header": None,
            "dtype": str,
            "keep_default_na": False,
            # a single-column row holding "" is still a row
            "skip_blank_lines": False,
            "engine": "python",
            "on_bad_lines": _truncate_bad_line,
        }
        wrapper: Optional[io.TextIOWrapper] = None
        if isinstance(source, (str, os.PathLike)):
            handle: Any = source
            read_kwargs["encoding"] = "utf-8-sig"
        elif isinstance(source, io.TextIOBase):
            handle = source
        else:
            wrapper = io.TextIOWrapper(source, encoding="utf-8-sig", newline="")
            handle = wrapper

        try:
            try:
                reader = pd.read_csv(handle, **read_kwargs)
            except pd.errors.EmptyDataError:
                logger.info("CSV source is empty; nothing to score")
                return
            except _STREAM_ERRORS as exc:
                raise IngestionError(f"Critical stream error: {exc}") from exc

            with reader:
                try:
                    # header row alone, before any data row reaches the callback
                    first = reader.get_chunk(1)
                except (StopIteration, pd.errors.EmptyDataError):
                    return
                except _STREAM_ERRORS as exc:
                    raise IngestionError(f"Critical stream error: {exc}") from exc
                if first.empty:
                    return
                header.extend(str(name) for name in first.iloc[0].tolist())

                while True:
                    try:
                        chunk = next(reader)
                    except (StopIteration, pd.errors.EmptyDataError):
                        break
                    except _STREAM_ERRORS as exc:
                        raise IngestionError(f"Critical stream error: {exc}") from exc

                    for values in chunk.itertuples(index=False, name=None):
                        yield dict(zip(header, values))
        finally:
            # leave the caller's binary stream open
            if wrapper is not None:
                wrapper.detach()

    def process(
        self,
        source: CsvSource,
        options: Optional[IngestionOptions] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> tuple[Histogram, int]:
        """Score every row of ``source`` and return the finished histogram and truncated-row count."""
        opts = options or IngestionOptions()
        state = _RunState()

        for row in self._iter_rows(source, state):
            if cancel_event is not None and cancel_event.is_set():
                raise IngestionCancelled("Ingestion cancelled before completion")
            text = redact(select_text(row, opts.text_column))
            state.histogram.add(score_text(self.scorer, text))

        return state.histogram, state.truncated_rows

    def run(
        self,
        source: CsvSource,
        options: Optional[IngestionOptions] = None,
        *,
        cleanup_path: Optional[Union[str, os.PathLike]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IngestionResult:
        """
        Ingest ``source`` and persist exactly one aggregate record.

        ``cleanup_path`` names a temporary upload owned by this run; it is
        removed only after the insert succeeds so a failed run leaves it in
        place for inspection.
        """
        opts = options or IngestionOptions()
        histogram, truncated = self.process(source, opts, cancel_event=cancel_event)
        counts = histogram.counts

        try:
            record_id = self.store.insert(opts.project_title, counts)
        except StorageError:
            logger.error("Persisting '%s' failed; %d rows scored but not stored", opts.project_title, histogram.total)
            raise

        logger.info(
            "Stored dataset %s '%s' (%d rows, %d truncated)",
            record_id,
            opts.project_title,
            histogram.total,
            truncated,
        )

        if cleanup_path is not None:
            _remove_quietly(Path(cleanup_path))

        return IngestionResult(
            id=record_id,
            histogram=counts,
            project_title=opts.project_title,
            rows=histogram.total,
            truncated_rows=truncated,
        )

    async def run_async(
        self,
        source: CsvSource,
        options: Optional[IngestionOptions] = None,
        *,
        cleanup_path: Optional[Union[str, os.PathLike]] = None,
    ) -> IngestionResult:
        """Run in a worker thread; cancelling the awaiting task abandons the run."""
        cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(
                self.run,
                source,
                options,
                cleanup_path=cleanup_path,
                cancel_event=cancel_event,
            )
        except asyncio.CancelledError:
            cancel_event.set()
            raise


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Temporary upload %s was already removed", path)
    except OSError as exc:
        logger.warning("Could not remove temporary upload %s: %s", path, exc)
