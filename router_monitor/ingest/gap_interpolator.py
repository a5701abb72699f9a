"""Gap detector & interpolator.

Corre una vez por poll, antes de escribir el registro real. Si desde el
último registro con lifetime bytes pasó más de ``threshold_multiplier``
intervalos y el contador creció, reparte linealmente ese crecimiento en
registros sintéticos equiespaciados para que las ventanas de uso no
atribuyan todo el hueco a un solo instante.

Los registros sintéticos son de baja confianza: contadores de sesión en
cero, señal nula y ``interpolated=True``. Cuando las condiciones no se
cumplen (delta no positivo, hueco de más de un día) no se interpola y el
hueco queda sin atribuir; esto subestima el uso de esa ventana.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..core.domain.records import TimeSeriesRecord
from ..core.domain.snapshot import NormalizedSnapshot
from ..infrastructure.persistence.timeseries_store import TimeSeriesStore

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000


class GapState(str, Enum):
    NO_PRIOR_DATA = "no_prior_data"
    NORMAL = "normal"
    GAP_DETECTED = "gap_detected"


@dataclass(frozen=True)
class GapConfig:
    """Configuración del detector de huecos."""
    poll_interval_ms: int = 5000
    threshold_multiplier: int = 3

    @property
    def threshold_ms(self) -> int:
        return self.poll_interval_ms * self.threshold_multiplier

    def spans_under_a_day(self, num_intervals: int) -> bool:
        return num_intervals * self.poll_interval_ms < MS_PER_DAY

    @classmethod
    def from_env(cls) -> "GapConfig":
        return cls(
            poll_interval_ms=int(os.getenv("POLL_INTERVAL_MS", "5000")),
            threshold_multiplier=int(os.getenv("GAP_THRESHOLD_MULTIPLIER", "3")),
        )


@dataclass(frozen=True)
class GapPlan:
    """Resultado de evaluar un poll contra el último registro."""
    state: GapState
    last_record: Optional[TimeSeriesRecord] = None
    synthetic: Tuple[TimeSeriesRecord, ...] = ()
    skipped_reason: Optional[str] = None

    @property
    def interpolated(self) -> int:
        return len(self.synthetic)


def detect_gap(
    last: Optional[TimeSeriesRecord],
    timestamp: int,
    lifetime_bytes: Optional[int],
    config: GapConfig,
) -> GapState:
    if last is None:
        return GapState.NO_PRIOR_DATA
    if lifetime_bytes is None or last.lifetime_bytes is None:
        return GapState.NORMAL
    gap = timestamp - last.timestamp
    if gap > config.threshold_ms and lifetime_bytes > last.lifetime_bytes:
        return GapState.GAP_DETECTED
    return GapState.NORMAL


def interpolate(
    last: TimeSeriesRecord,
    timestamp: int,
    lifetime_bytes: int,
    config: GapConfig,
) -> Tuple[List[TimeSeriesRecord], Optional[str]]:
    """Registros sintéticos entre ``last`` y ``timestamp``.

    ``num_intervals = floor(gap / poll_interval)``; se generan
    ``num_intervals - 1`` registros en ``last.timestamp + i * poll_interval``
    con ``lifetime = floor(last.lifetime + delta * i / num_intervals)``.

    Returns:
        (registros, motivo) - motivo es ``None`` salvo que no se interpole
    """
    poll = config.poll_interval_ms
    num_intervals = (timestamp - last.timestamp) // poll
    if num_intervals <= 0:
        return [], "gap_too_small"
    if not config.spans_under_a_day(num_intervals):
        return [], "gap_too_large"

    delta = lifetime_bytes - (last.lifetime_bytes or 0)
    if delta <= 0:
        return [], "non_positive_delta"

    base = last.lifetime_bytes or 0
    records = [
        TimeSeriesRecord.synthetic(
            timestamp=last.timestamp + i * poll,
            lifetime_bytes=base + (delta * i) // num_intervals,
        )
        for i in range(1, num_intervals)
    ]
    return records, None


class GapInterpolator:
    """Detector de huecos ligado a un time-series store.

    Nunca lanza por condiciones no cumplidas; solo propaga ``StorageError``
    del store.
    """

    def __init__(self, store: TimeSeriesStore, config: Optional[GapConfig] = None):
        self._store = store
        self._config = config or GapConfig()

    @property
    def config(self) -> GapConfig:
        return self._config

    def plan(self, snapshot: NormalizedSnapshot) -> GapPlan:
        last = self._store.latest_before(snapshot.timestamp, with_lifetime=True)
        state = detect_gap(last, snapshot.timestamp, snapshot.lifetime_bytes, self._config)
        if state is not GapState.GAP_DETECTED:
            return GapPlan(state=state, last_record=last)

        records, reason = interpolate(
            last, snapshot.timestamp, snapshot.lifetime_bytes, self._config
        )
        if reason:
            logger.info(
                "[GAP] Not interpolating gap_ms=%d reason=%s",
                snapshot.timestamp - last.timestamp, reason,
            )
        return GapPlan(
            state=state,
            last_record=last,
            synthetic=tuple(records),
            skipped_reason=reason,
        )

    def fill(self, snapshot: NormalizedSnapshot) -> GapPlan:
        """Evalúa el hueco y escribe los registros sintéticos en un solo append."""
        plan = self.plan(snapshot)
        if plan.synthetic:
            self._store.append_many(list(plan.synthetic))
            logger.warning(
                "[GAP] Interpolated records=%d gap_ms=%d lifetime_delta=%d",
                plan.interpolated,
                snapshot.timestamp - plan.last_record.timestamp,
                snapshot.lifetime_bytes - (plan.last_record.lifetime_bytes or 0),
            )
        return plan
