"""Loop de polling a intervalo fijo con refresco bajo demanda."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .cycle import PollCycle, PollOutcome

logger = logging.getLogger(__name__)

OutcomeHandler = Callable[[PollOutcome], None]


class PollLoop:
    """Dispara ``PollCycle.run_once`` cada ``interval_ms``.

    ``request_refresh`` adelanta el próximo ciclo (p.ej. al cambiar una
    opción de display). Ambos disparadores usan el mismo camino serializado,
    y un refresco reinicia el intervalo.
    """

    def __init__(
        self,
        cycle: PollCycle,
        interval_ms: int,
        on_outcome: Optional[OutcomeHandler] = None,
    ):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._cycle = cycle
        self._interval_s = interval_ms / 1000
        self._on_outcome = on_outcome
        self._stop_event = threading.Event()
        self._refresh_event = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def request_refresh(self) -> None:
        self._refresh_event.set()

    def stop(self) -> None:
        self._stop_event.set()
        self._refresh_event.set()

    def run(self, max_polls: Optional[int] = None) -> int:
        """Corre hasta ``stop()`` o hasta ``max_polls`` ciclos.

        Returns:
            Cantidad de ciclos ejecutados
        """
        polls = 0
        next_at = time.monotonic()
        logger.info("[POLL] Loop started interval=%.1fs", self._interval_s)

        while not self._stop_event.is_set():
            self._tick()
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break

            now = time.monotonic()
            next_at = max(next_at + self._interval_s, now)
            if self._refresh_event.wait(timeout=next_at - now):
                self._refresh_event.clear()
                next_at = time.monotonic()

        logger.info("[POLL] Loop stopped polls=%d %s", polls, self._cycle.stats)
        return polls

    def _tick(self) -> None:
        try:
            outcome = self._cycle.run_once()
        except Exception:
            logger.exception("[POLL] Unexpected error in poll cycle")
            return

        # Shutdown while the poll was in flight: its result is abandoned.
        if self._stop_event.is_set():
            return
        if self._on_outcome is not None:
            try:
                self._on_outcome(outcome)
            except Exception:
                logger.exception("[POLL] Outcome handler failed")
