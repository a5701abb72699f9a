"""Display toggles, persisted as JSON in the settings table."""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, fields, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..core.domain.errors import StorageError
from ..infrastructure.persistence.settings_repository import SettingsRepository

logger = logging.getLogger(__name__)

SETTINGS_KEY = "displayOptions"

KEY_BINDINGS: Mapping[str, str] = MappingProxyType({
    "n": "show_network",
    "b": "show_bandwidth",
    "h": "show_history",
    "d": "show_device",
    "v": "show_verbose",
})
QUIT_KEYS = frozenset({"q", "\x03"})  # q, Ctrl+C


@dataclass(frozen=True)
class DisplayOptions:
    show_network: bool = True
    show_bandwidth: bool = True
    show_history: bool = False
    show_device: bool = False
    show_verbose: bool = False

    def toggled(self, flag: str) -> "DisplayOptions":
        return replace(self, **{flag: not getattr(self, flag)})

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any, base: Optional["DisplayOptions"] = None) -> "DisplayOptions":
        """Merge stored flags over ``base``; unknown keys and non-bools are ignored."""
        base = base or cls()
        if not isinstance(data, dict):
            return base
        known = {f.name for f in fields(cls)}
        updates = {k: v for k, v in data.items() if k in known and isinstance(v, bool)}
        return replace(base, **updates)


class DisplayOptionsStore:
    """Current options plus persistence.

    Toggles come from the keyboard thread while the poll loop reads
    ``current``; the lock only guards the swap of the immutable value.
    """

    def __init__(self, repository: Optional[SettingsRepository], defaults: Optional[DisplayOptions] = None):
        self._repository = repository
        self._defaults = defaults or DisplayOptions()
        self._current = self._defaults
        self._lock = threading.Lock()

    @property
    def current(self) -> DisplayOptions:
        with self._lock:
            return self._current

    def load(self) -> DisplayOptions:
        stored = None
        if self._repository is not None:
            try:
                stored = self._repository.get_json(SETTINGS_KEY)
            except StorageError as e:
                logger.warning("[SETTINGS] Could not load display options: %s", e)
        options = DisplayOptions.from_dict(stored, base=self._defaults)
        with self._lock:
            self._current = options
        return options

    def toggle(self, flag: str) -> DisplayOptions:
        with self._lock:
            self._current = self._current.toggled(flag)
            options = self._current
        self._save(options)
        return options

    def reset(self) -> DisplayOptions:
        if self._repository is not None:
            try:
                self._repository.delete(SETTINGS_KEY)
            except StorageError as e:
                logger.warning("[SETTINGS] Could not reset display options: %s", e)
        with self._lock:
            self._current = self._defaults
        return self._defaults

    def _save(self, options: DisplayOptions) -> None:
        if self._repository is None:
            return
        try:
            self._repository.set_json(SETTINGS_KEY, options.to_dict())
        except StorageError as e:
            # The toggle still applies for this session.
            logger.warning("[SETTINGS] Could not persist display options: %s", e)


def handle_key(
    key: str,
    options: DisplayOptionsStore,
    on_refresh,
    on_quit,
) -> bool:
    """Apply one key press.

    Returns:
        True if the key was recognised
    """
    if key in QUIT_KEYS:
        on_quit()
        return True
    flag = KEY_BINDINGS.get(key.lower())
    if flag is None:
        return False
    options.toggle(flag)
    on_refresh()
    return True
