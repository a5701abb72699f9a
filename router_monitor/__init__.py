"""LTE router monitor: polls the router status API, reconciles its counters,
persists a time series and feeds a live terminal dashboard."""

__version__ = "0.1.0"
