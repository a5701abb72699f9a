"""Validation module - proyección tipada del snapshot crudo."""

from .device_status import project_device_status
from .raw_snapshot import RouterSnapshotPayload, project_raw_snapshot

__all__ = ["RouterSnapshotPayload", "project_device_status", "project_raw_snapshot"]
