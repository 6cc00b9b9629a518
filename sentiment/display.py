"""
Read-only lookup of stored histograms for embeddable charts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.errors import DatasetNotFoundError
from .histogram import bucket_label

if TYPE_CHECKING:
    from core.database import AggregateRecord, AggregateStore


class DatasetDisplay:
    def __init__(self, store: "AggregateStore"):
        self.store = store

    def _get_record(self, record_id: int) -> "AggregateRecord":
        record = self.store.get_by_id(record_id)
        if record is None:
            raise DatasetNotFoundError(record_id)
        return record

    def get_display(self, record_id: int) -> dict[str, Any]:
        """Return the persisted row for ``record_id``; unknown ids raise DatasetNotFoundError."""
        return self._get_record(record_id).to_row()

    def get_chart(self, record_id: int) -> dict[str, Any]:
        """Same record shaped as labelled series for a bar chart."""
        record = self._get_record(record_id)
        counts = list(record.histogram)
        return {
            "id": record.id,
            "project_title": record.project_title,
            "labels": [bucket_label(i) for i in range(len(counts))],
            "counts": counts,
            "total": record.total,
        }
