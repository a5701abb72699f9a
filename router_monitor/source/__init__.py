"""Upstream snapshot sources."""

from .http_source import HttpSnapshotSource, looks_like_login_page
from .snapshot_source import ScriptedSnapshotSource, SnapshotSource

__all__ = [
    "HttpSnapshotSource",
    "looks_like_login_page",
    "ScriptedSnapshotSource",
    "SnapshotSource",
]
