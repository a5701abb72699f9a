"""Un ciclo de polling: fetch → normalize → speed → gap fill → store → windows.

Todos los disparadores (timer fijo y refresco por teclado) pasan por
``PollCycle.run_once``, que serializa los ciclos con un lock: nunca hay dos
fetch-normalize-store en vuelo a la vez.

Ningún error del ciclo es fatal. Red, auth y parseo abortan el poll sin
mutar estado; un fallo de almacenamiento se registra y las métricas del
poll se entregan igual al display.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from ..core.domain.errors import (
    AuthError,
    AuthExpired,
    NetworkError,
    ParseError,
    RouterMonitorError,
    StorageError,
)
from ..core.domain.records import BandwidthSample, SpeedResult, TimeSeriesRecord
from ..core.domain.snapshot import NormalizedSnapshot
from ..core.validation.device_status import project_device_status
from ..dashboard.view_model import DashboardView
from ..infrastructure.persistence.timeseries_store import TimeSeriesStore
from ..ingest.bandwidth import compute_speed
from ..ingest.gap_interpolator import GapInterpolator, GapPlan
from ..ingest.normalizer import normalize
from ..ingest.usage_windows import DEFAULT_WINDOWS, METRIC_LIFETIME, usage_over_windows
from ..source.snapshot_source import SnapshotSource
from .state import PollerState
from .stats import PollStats

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class PollOutcome:
    ok: bool
    timestamp: int
    view: Optional[DashboardView] = None
    error: Optional[RouterMonitorError] = None
    stored: bool = False
    gap: Optional[GapPlan] = None


class PollCycle:

    def __init__(
        self,
        source: SnapshotSource,
        store: TimeSeriesStore,
        state: PollerState,
        gap_interpolator: Optional[GapInterpolator] = None,
        windows: Mapping[str, int] = DEFAULT_WINDOWS,
        stats: Optional[PollStats] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self._source = source
        self._store = store
        self._state = state
        self._gap = gap_interpolator or GapInterpolator(store)
        self._windows = windows
        self._clock = clock
        self._lock = threading.Lock()
        self.stats = stats or PollStats()

    @property
    def state(self) -> PollerState:
        return self._state

    def run_once(self) -> PollOutcome:
        with self._lock:
            return self._run_locked()

    def _run_locked(self) -> PollOutcome:
        self.stats.polls += 1
        try:
            raw = self._fetch()
            timestamp = self._clock()
            snapshot = normalize(raw, timestamp)
        except (NetworkError, AuthError, ParseError) as e:
            return self._failed(e)

        speed = self._speed(snapshot)
        gap, stored = self._persist(snapshot)
        usage, lifetime_usage = self._usage(snapshot.timestamp)
        if usage is None:
            usage = {label: None for label in self._windows}
            lifetime_usage = dict(usage)

        # State only moves forward once the poll produced a snapshot.
        self._state.previous = snapshot
        self._state.last_speed = speed
        if speed is not None and not speed.discarded:
            self._state.record_sample(
                BandwidthSample(
                    timestamp=snapshot.timestamp,
                    download_bps=speed.download_bps,
                    upload_bps=speed.upload_bps,
                )
            )

        self.stats.succeeded += 1
        self.stats.last_success_at = snapshot.timestamp

        view = DashboardView.build(
            snapshot,
            speed,
            usage,
            history=self._state.history_snapshot(),
            lifetime_usage_by_window=lifetime_usage,
            device=project_device_status(raw),
            stored=stored,
        )
        return PollOutcome(ok=True, timestamp=snapshot.timestamp, view=view, stored=stored, gap=gap)

    def _fetch(self) -> Dict[str, Any]:
        """Fetch con una única re-autenticación y un único reintento."""
        try:
            return self._source.fetch_snapshot()
        except AuthExpired:
            logger.warning("[POLL] Session expired, re-authenticating")
            self._source.reauthenticate()
            self.stats.reauthentications += 1
            return self._source.fetch_snapshot()

    def _speed(self, snapshot: NormalizedSnapshot) -> Optional[SpeedResult]:
        previous = self._state.previous
        if previous is None:
            return None
        speed = compute_speed(previous, snapshot)
        if speed.discarded:
            self.stats.samples_discarded += 1
            logger.warning(
                "[POLL] Speed sample discarded reason=%s dt_ms=%d",
                speed.reason, snapshot.timestamp - previous.timestamp,
            )
        return speed

    def _persist(self, snapshot: NormalizedSnapshot) -> tuple[Optional[GapPlan], bool]:
        gap = None
        failure: Optional[StorageError] = None
        try:
            gap = self._gap.fill(snapshot)
            self.stats.records_interpolated += gap.interpolated
        except StorageError as e:
            logger.warning("[POLL] Gap fill skipped, storage failed: %s", e)
            failure = e

        try:
            self._store.append(TimeSeriesRecord.from_snapshot(snapshot))
        except StorageError as e:
            logger.warning("[POLL] Record not stored ts=%d: %s", snapshot.timestamp, e)
            failure = e

        if failure is not None:
            self.stats.record_error(failure)
            return gap, False
        return gap, True

    def _usage(self, now_ms: int):
        try:
            usage = usage_over_windows(self._store, self._windows, now_ms=now_ms)
            lifetime = usage_over_windows(
                self._store, self._windows, now_ms=now_ms, metric=METRIC_LIFETIME
            )
        except StorageError as e:
            logger.warning("[POLL] Usage windows unavailable: %s", e)
            self.stats.record_error(e)
            return None, None
        return usage, lifetime

    def _failed(self, error: RouterMonitorError) -> PollOutcome:
        self.stats.failed += 1
        self.stats.record_error(error)
        logger.warning("[POLL] Poll failed %s: %s", type(error).__name__, error)
        return PollOutcome(ok=False, timestamp=self._clock(), error=error)
