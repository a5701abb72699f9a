"""Ingest layer - normalización y métricas derivadas."""

from .bandwidth import COUNTER_RESET, NON_POSITIVE_INTERVAL, compute_speed, samples_from_history
from .gap_interpolator import GapConfig, GapInterpolator, GapPlan, GapState, detect_gap, interpolate
from .normalizer import COUNTER_CONVENTIONS, CounterConvention, normalize, normalize_payload
from .usage_windows import DEFAULT_WINDOWS, usage_over_windows

__all__ = [
    "COUNTER_RESET",
    "NON_POSITIVE_INTERVAL",
    "compute_speed",
    "samples_from_history",
    "GapConfig",
    "GapInterpolator",
    "GapPlan",
    "GapState",
    "detect_gap",
    "interpolate",
    "COUNTER_CONVENTIONS",
    "CounterConvention",
    "normalize",
    "normalize_payload",
    "DEFAULT_WINDOWS",
    "usage_over_windows",
]
