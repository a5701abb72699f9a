"""Display layer: view model, options and plain-text rendering."""

from .display_options import DisplayOptions, DisplayOptionsStore, handle_key
from .render import TerminalRenderer, format_bytes, histogram, render_lines
from .view_model import DashboardView

__all__ = [
    "DisplayOptions",
    "DisplayOptionsStore",
    "handle_key",
    "TerminalRenderer",
    "format_bytes",
    "histogram",
    "render_lines",
    "DashboardView",
]
