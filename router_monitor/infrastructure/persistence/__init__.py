"""Persistence infrastructure for the router time series."""

from .memory_store import InMemoryTimeSeriesStore
from .schema import ensure_schema
from .settings_repository import SettingsRepository
from .timeseries_store import SqlTimeSeriesStore, TimeSeriesStore

__all__ = [
    "InMemoryTimeSeriesStore",
    "ensure_schema",
    "SettingsRepository",
    "SqlTimeSeriesStore",
    "TimeSeriesStore",
]
