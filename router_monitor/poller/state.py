"""Estado mutable del ciclo de polling, explícito y aislado.

El snapshot previo y el ring buffer de ancho de banda viven aquí en vez de
en variables de módulo, así un test puede construir cualquier estado y
alimentar snapshots sintéticos al ciclo.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Tuple

from ..core.domain.records import BandwidthSample, SpeedResult
from ..core.domain.snapshot import NormalizedSnapshot
from ..infrastructure.persistence.timeseries_store import TimeSeriesStore
from ..ingest.bandwidth import samples_from_history

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SAMPLES = 66


@dataclass
class PollerState:
    history_size: int = DEFAULT_HISTORY_SAMPLES
    previous: Optional[NormalizedSnapshot] = None
    last_speed: Optional[SpeedResult] = None
    history: Deque[BandwidthSample] = field(init=False)

    def __post_init__(self) -> None:
        if self.history_size < 1:
            raise ValueError(f"history_size must be >= 1, got {self.history_size}")
        self.history = deque(maxlen=self.history_size)

    def record_sample(self, sample: BandwidthSample) -> None:
        self.history.append(sample)

    def history_snapshot(self) -> Tuple[BandwidthSample, ...]:
        return tuple(self.history)

    def seed_from_store(self, store: TimeSeriesStore) -> int:
        """Rellena el ring buffer desde el histórico persistido.

        Lee ``history_size + 1`` registros para obtener ``history_size``
        deltas reales: los interpolados no tienen contadores de sesión y el
        store los salta antes de aplicar el límite.

        Returns:
            Cantidad de muestras cargadas
        """
        records = store.last_n(self.history_size + 1, real_only=True)
        samples = samples_from_history(records)
        self.history.extend(samples)
        logger.info("[POLL] Seeded bandwidth history samples=%d", len(samples))
        return len(samples)
