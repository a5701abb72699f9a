"""Usage window aggregator.

Bytes transferidos en los últimos N minutos/horas = max - min del contador
acumulado dentro de la ventana. Cada ventana es un scan nuevo contra el
store; no se arrastra estado entre llamadas.
"""

from __future__ import annotations

import time
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Union

from ..infrastructure.persistence.timeseries_store import TimeSeriesStore

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS

DEFAULT_WINDOWS: Mapping[str, int] = MappingProxyType({
    "5m": 5 * MINUTE_MS,
    "15m": 15 * MINUTE_MS,
    "30m": 30 * MINUTE_MS,
    "45m": 45 * MINUTE_MS,
    "1h": HOUR_MS,
    "6h": 6 * HOUR_MS,
    "12h": 12 * HOUR_MS,
    "24h": 24 * HOUR_MS,
})

METRIC_AGGREGATE = "aggregate"
METRIC_LIFETIME = "lifetime"


def usage_over_windows(
    store: TimeSeriesStore,
    windows: Union[Mapping[str, int], Iterable[int]] = DEFAULT_WINDOWS,
    now_ms: Optional[int] = None,
    metric: str = METRIC_AGGREGATE,
) -> Dict[Union[str, int], Optional[int]]:
    """Uso por ventana.

    Args:
        store: time-series store a consultar
        windows: ``label -> duración ms`` o una colección de duraciones
            (en ese caso la duración es también la clave del resultado)
        now_ms: instante de referencia; por defecto el reloj actual
        metric: ``"aggregate"`` (download+upload de registros reales) o
            ``"lifetime"`` (lifetime bytes, interpolados incluidos)

    Returns:
        Dict ventana -> bytes, o ``None`` si la ventana tiene menos de dos
        registros (sin datos, que no es lo mismo que uso cero).
    """
    if metric == METRIC_AGGREGATE:
        query = store.range_min_max_aggregate
    elif metric == METRIC_LIFETIME:
        query = store.range_min_max_lifetime
    else:
        raise ValueError(f"unknown usage metric: {metric!r}")

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    items = windows.items() if isinstance(windows, Mapping) else ((w, w) for w in windows)

    usage: Dict[Union[str, int], Optional[int]] = {}
    for key, duration_ms in items:
        result = query(now_ms - duration_ms)
        if result is None or result.count < 2:
            usage[key] = None
        else:
            usage[key] = result.delta
    return usage
