"""Read-only view model handed to the display layer once per poll."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from ..core.domain.device import DeviceStatus
from ..core.domain.records import BandwidthSample, SpeedResult
from ..core.domain.snapshot import NormalizedSnapshot


@dataclass(frozen=True)
class DashboardView:
    snapshot: NormalizedSnapshot
    speed: Optional[SpeedResult]
    usage_by_window: Mapping[str, Optional[int]]
    # Offload counters are known to under-report; aggregates may be low.
    offload_warning_active: bool
    history: Tuple[BandwidthSample, ...] = ()
    lifetime_usage_by_window: Mapping[str, Optional[int]] = field(default_factory=dict)
    device: Optional[DeviceStatus] = None
    stored: bool = True

    @classmethod
    def build(
        cls,
        snapshot: NormalizedSnapshot,
        speed: Optional[SpeedResult],
        usage_by_window: Mapping[str, Optional[int]],
        history: Tuple[BandwidthSample, ...] = (),
        **extra,
    ) -> "DashboardView":
        return cls(
            snapshot=snapshot,
            speed=speed,
            usage_by_window=dict(usage_by_window),
            offload_warning_active=snapshot.offload_active,
            history=tuple(history),
            **extra,
        )

    @property
    def backfilled_windows(self) -> Tuple[str, ...]:
        """Windows with no real-record figure but a lifetime one (gap filled)."""
        return tuple(
            label for label, value in self.usage_by_window.items()
            if value is None and self.lifetime_usage_by_window.get(label) is not None
        )

    def effective_usage_by_window(self) -> Dict[str, Optional[int]]:
        """Aggregate usage per window, falling back to lifetime usage where missing."""
        usage = dict(self.usage_by_window)
        for label in self.backfilled_windows:
            usage[label] = self.lifetime_usage_by_window[label]
        return usage
