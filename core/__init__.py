"""pulseboard core modules"""

from .config import Config, get_config
from .database import (
    AggregateRecord,
    AggregateStore,
    PooledAggregateStore,
    SQLiteAggregateStore,
    create_store,
)
from .errors import (
    DatasetNotFoundError,
    IngestionCancelled,
    IngestionError,
    InputError,
    PulseboardError,
    ScoringError,
    StorageError,
)

__all__ = [
    "AggregateRecord",
    "AggregateStore",
    "Config",
    "DatasetNotFoundError",
    "IngestionCancelled",
    "IngestionError",
    "InputError",
    "PooledAggregateStore",
    "PulseboardError",
    "SQLiteAggregateStore",
    "ScoringError",
    "StorageError",
    "create_store",
    "get_config",
]
