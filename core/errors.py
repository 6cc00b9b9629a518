"""
Error taxonomy for pulseboard.

Every failure carries a stable ``category`` so HTTP and CLI callers can
report it without parsing messages.
"""

from typing import Any


class PulseboardError(Exception):
    """Base class for all pulseboard failures"""

    category = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.category, "message": self.message}


class InputError(PulseboardError):
    """Caller supplied nothing usable (e.g. no file)"""

    category = "input_error"


class IngestionError(PulseboardError):
    """The CSV stream could not be read or parsed"""

    category = "ingestion_error"


class IngestionCancelled(IngestionError):
    category = "cancelled"


class ScoringError(PulseboardError):
    """The sentiment scorer raised while scoring a row"""

    category = "scoring_error"


class StorageError(PulseboardError):
    """Insert or lookup failed in the aggregate store"""

    category = "storage_error"


class DatasetNotFoundError(PulseboardError):
    category = "not_found"

    def __init__(self, record_id: int):
        super().__init__(f"Dataset not found: {record_id}")
        self.record_id = record_id
