"""Single-key reader for the dashboard (POSIX terminals only)."""

from __future__ import annotations

import logging
import os
import select
import sys
import threading
from typing import Callable, Optional, TextIO

logger = logging.getLogger(__name__)

KeyHandler = Callable[[str], None]


class KeyboardListener:
    """Reads keys in cbreak mode on a daemon thread.

    Handlers only toggle display flags; they never touch poll state.
    """

    def __init__(self, on_key: KeyHandler, stream: Optional[TextIO] = None, poll_timeout: float = 0.2):
        self._on_key = on_key
        self._stream = stream or sys.stdin
        self._poll_timeout = poll_timeout
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._saved_attrs = None

    @property
    def available(self) -> bool:
        try:
            return self._stream.isatty()
        except (AttributeError, ValueError):
            return False

    def start(self) -> bool:
        if not self.available:
            logger.info("[KEYS] stdin is not a terminal, keyboard disabled")
            return False

        import termios
        import tty

        fd = self._stream.fileno()
        self._saved_attrs = termios.tcgetattr(fd)
        tty.setcbreak(fd)

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._read_loop, name="keyboard", daemon=True)
        self._thread.start()
        return True

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._saved_attrs is not None:
            import termios

            termios.tcsetattr(self._stream.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def _read_loop(self) -> None:
        fd = self._stream.fileno()
        while not self._stop_event.is_set():
            ready, _, _ = select.select([fd], [], [], self._poll_timeout)
            if not ready:
                continue
            data = os.read(fd, 1)
            if not data:
                return
            try:
                self._on_key(data.decode("utf-8", errors="ignore"))
            except Exception:
                logger.exception("[KEYS] Key handler failed")
