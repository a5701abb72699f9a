"""Delta/bandwidth calculator.

The router only exposes cumulative counters. Speed is the aggregate delta
over the wall-clock delta between two polls. A negative delta means the
counters were reset (router reboot, new session); the wrap width is unknown,
so no rollover arithmetic is attempted and the interval is discarded.
"""

from __future__ import annotations

from typing import Iterable, List, Protocol

from ..core.domain.records import BandwidthSample, SpeedResult

COUNTER_RESET = "counter_reset"
NON_POSITIVE_INTERVAL = "non_positive_interval"


class _Cumulative(Protocol):
    timestamp: int
    aggregate_download: int
    aggregate_upload: int


def compute_speed(prev: _Cumulative, curr: _Cumulative) -> SpeedResult:
    """Throughput between two snapshots (or records), in bytes/second.

    Accepts anything with ``timestamp`` (ms) and aggregate counters, so the
    same rule serves live polls and history replay.
    """
    time_delta_seconds = (curr.timestamp - prev.timestamp) / 1000
    if time_delta_seconds <= 0:
        return SpeedResult.discard(NON_POSITIVE_INTERVAL)

    download_delta = curr.aggregate_download - prev.aggregate_download
    upload_delta = curr.aggregate_upload - prev.aggregate_upload
    if download_delta < 0 or upload_delta < 0:
        return SpeedResult.discard(COUNTER_RESET)

    return SpeedResult(
        download_bps=download_delta / time_delta_seconds,
        upload_bps=upload_delta / time_delta_seconds,
    )


def samples_from_history(records: Iterable[_Cumulative]) -> List[BandwidthSample]:
    """Recompute bandwidth samples from consecutive records, oldest first.

    Pairs discarded by ``compute_speed`` are skipped rather than reported
    as zero, so a reboot in the history does not draw a fake idle bar.
    """
    samples: List[BandwidthSample] = []
    previous = None
    for record in records:
        if previous is not None:
            speed = compute_speed(previous, record)
            if not speed.discarded:
                samples.append(
                    BandwidthSample(
                        timestamp=record.timestamp,
                        download_bps=speed.download_bps,
                        upload_bps=speed.upload_bps,
                    )
                )
        previous = record
    return samples
