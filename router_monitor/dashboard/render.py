"""Plain-text dashboard renderer.

One line per item, one block per enabled section. No boxed layout; the
screen is repainted in place with ANSI home/clear sequences.
"""

from __future__ import annotations

import sys
import time
from typing import Collection, List, Mapping, Optional, Sequence, TextIO

from ..core.domain.snapshot import ConnectionSource
from .display_options import DisplayOptions
from .view_model import DashboardView

_UNITS = ("B", "KB", "MB", "GB", "TB")

HISTOGRAM_ROWS = 5
HISTOGRAM_MIN_SAMPLES = 5
BAR_WIDTH = 35
WINDOW_ROWS = (("5m", "15m", "30m", "45m"), ("1h", "6h", "12h", "24h"))

_CURSOR_HOME = "\033[H"
_CLEAR_TO_END = "\033[J"
_HIDE_CURSOR = "\033[?25l"
_SHOW_CURSOR = "\033[?25h"

_SOURCE_LABELS = {
    ConnectionSource.CELLULAR: "Cellular",
    ConnectionSource.WIFI_OFFLOAD: "WiFi offload",
    ConnectionSource.ETHERNET_OFFLOAD: "Ethernet offload",
}


def format_bytes(value: Optional[float]) -> str:
    """1024-based, two decimals at most: ``1536 -> "1.5 KB"``."""
    if value is None:
        return "---"
    if value <= 0:
        return "0 B"
    scaled = float(value)
    exponent = 0
    while scaled >= 1024 and exponent < len(_UNITS) - 1:
        scaled /= 1024
        exponent += 1
    text = f"{scaled:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[exponent]}"


def format_speed(bps: Optional[float]) -> str:
    return f"{format_bytes(bps)}/s"


def format_duration(seconds: Optional[int]) -> str:
    if seconds is None:
        return "---"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs}s"


def bar(value: float, max_value: float, width: int = BAR_WIDTH) -> str:
    ratio = value / max_value if max_value > 0 else 0.0
    filled = max(0, min(width, int(ratio * width)))
    return "█" * filled + "░" * (width - filled)


def histogram(values: Sequence[float], rows: int = HISTOGRAM_ROWS) -> List[str]:
    """Block histogram, top row first.

    Each column is scaled to ``rows`` cells against the series max; a cell
    is full above ``row + 0.75``, half above ``row + 0.25`` and a sliver
    above ``row``.
    """
    if not values:
        return []
    top = max(max(values), 1)
    lines = []
    for row in range(rows - 1, -1, -1):
        cells = []
        for value in values:
            height = (value / top) * rows
            if height > row + 0.75:
                cells.append("█")
            elif height > row + 0.25:
                cells.append("▄")
            elif height > row:
                cells.append("▁")
            else:
                cells.append(" ")
        lines.append("".join(cells))
    return lines


def _usage_line(
    usage: Mapping[str, Optional[int]],
    labels: Sequence[str],
    marked: Collection[str] = (),
) -> Optional[str]:
    present = [label for label in labels if label in usage]
    if not present or all(usage[label] is None for label in present):
        return None
    cells = []
    for label in present:
        name = f"{label}*" if label in marked else label
        cells.append(f"{name:<3}:{format_bytes(usage[label]):>10}")
    return "  ".join(cells)


def render_lines(
    view: DashboardView,
    options: DisplayOptions,
    stats: Optional[dict] = None,
) -> List[str]:
    snapshot = view.snapshot
    cellular = snapshot.cellular
    lines: List[str] = [
        f"Router monitor  {time.strftime('%H:%M:%S', time.localtime(snapshot.timestamp / 1000))}",
        "",
    ]

    if options.show_network:
        source = snapshot.active_source
        lines.append(f"Network   {_SOURCE_LABELS[source]}")
        if source is ConnectionSource.WIFI_OFFLOAD:
            wifi = snapshot.wifi_offload
            lines.append(f"  SSID    {wifi.ssid}  bars {wifi.bars if wifi.bars is not None else 0}/5")
        elif source is ConnectionSource.CELLULAR:
            signal = cellular.signal
            lines.append(
                f"  Signal  {signal.bars if signal.bars is not None else '-'}/5 bars  "
                f"RSRP {signal.rsrp} dBm  RSRQ {signal.rsrq} dB  SINR {signal.sinr} dB"
            )
            if snapshot.lifetime_bytes:
                lines.append(f"  Lifetime {format_bytes(snapshot.lifetime_bytes)} (billing cycle)")
        lines.append(f"  Session {format_duration(cellular.session_duration)}")
        if view.offload_warning_active:
            lines.append("  ! Offload counters may under-report (router firmware)")
        lines.append("")

    if options.show_bandwidth:
        warning = "  ! may be inaccurate" if view.offload_warning_active else ""
        total = snapshot.aggregate_total
        lines.append(f"Usage{warning}")
        lines.append(f"  Download {bar(snapshot.aggregate_download, total)} {format_bytes(snapshot.aggregate_download)}")
        lines.append(f"  Upload   {bar(snapshot.aggregate_upload, total)} {format_bytes(snapshot.aggregate_upload)}")
        lines.append(f"  Total    {format_bytes(total)}")
        usage = view.effective_usage_by_window()
        backfilled = view.backfilled_windows
        for labels in WINDOW_ROWS:
            usage_line = _usage_line(usage, labels, marked=backfilled)
            if usage_line:
                lines.append(f"  {usage_line}")
        if backfilled:
            lines.append("  * from the lifetime counter, gap back-filled")
        lifetime_lines = [
            _usage_line(view.lifetime_usage_by_window, labels) for labels in WINDOW_ROWS
        ]
        if any(lifetime_lines):
            lines.append("  Lifetime (billing counter)")
            lines.extend(f"  {line}" for line in lifetime_lines if line)

        if view.speed is not None:
            speed = view.speed
            peak = max(speed.download_bps, speed.upload_bps, 1)
            lines.append("Speed" + (f"  (sample discarded: {speed.reason})" if speed.discarded else ""))
            lines.append(f"  Download {bar(speed.download_bps, peak)} {format_speed(speed.download_bps)}")
            lines.append(f"  Upload   {bar(speed.upload_bps, peak)} {format_speed(speed.upload_bps)}")

        if options.show_history and len(view.history) >= HISTOGRAM_MIN_SAMPLES:
            lines.append(f"History ({len(view.history)} samples)")
            lines.append("  DL:")
            lines.extend("  " + row for row in histogram([s.download_bps for s in view.history]))
            lines.append("  UL:")
            lines.extend("  " + row for row in histogram([s.upload_bps for s in view.history]))
        lines.append("")

    device = view.device
    if options.show_device and device is not None:
        lines.append(f"Device    {device.model or ''}".rstrip())
        lines.append(
            f"  Temp {device.temperature_c if device.temperature_c is not None else '-'}°C  "
            f"Uptime {format_duration(device.uptime_seconds)}  Power {device.power_state or '-'}"
        )
        lines.append(f"  WiFi {device.wifi_ssid or '-'} ({device.wifi_status or '-'})")
        limit = f"/{device.max_clients}" if device.max_clients is not None else ""
        lines.append(f"  Clients {len(device.clients)}{limit}")
        if options.show_verbose:
            for index, client in enumerate(device.clients, start=1):
                ap = "main" if client.primary_ap else "guest"
                lines.append(
                    f"    {index}. {client.name or 'Unknown Device'}  {client.ip}  "
                    f"MAC {client.mac or '-'}  [{ap}]"
                )
        lines.append("")

    if options.show_verbose:
        if not view.stored:
            lines.append("! Last sample was not stored")
        if stats:
            lines.append("Stats " + " ".join(f"{k}={v}" for k, v in stats.items() if v is not None))
        lines.append("")

    lines.append("[n] Network  [b] Bandwidth  [h] History  [d] Device  [v] Verbose  [q] Quit")
    return lines


def render_error(message: str) -> List[str]:
    return [f"Router monitor  {time.strftime('%H:%M:%S')}", "", f"! {message}", "", "[q] Quit"]


class TerminalRenderer:
    """Repaints the whole screen for each view."""

    def __init__(self, stream: TextIO = sys.stdout):
        self._stream = stream

    def start(self) -> None:
        self._stream.write(_HIDE_CURSOR)
        self._stream.flush()

    def stop(self) -> None:
        self._stream.write(_SHOW_CURSOR + "\n")
        self._stream.flush()

    def paint(self, lines: Sequence[str]) -> None:
        self._stream.write(_CURSOR_HOME + "\n".join(line + "\033[K" for line in lines) + _CLEAR_TO_END)
        self._stream.flush()
