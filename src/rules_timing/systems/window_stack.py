from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from rules_timing.errors import InvalidStateError

if TYPE_CHECKING:
    from rules_timing.systems.event_window import EventWindow

logger = logging.getLogger(__name__)


class WindowStack:
    """Tracks which event window is resolving right now.

    Windows push themselves when they start and pop when they finish; popping
    anything but the top window is a fault.
    """

    def __init__(self) -> None:
        self._frames: List["EventWindow"] = []

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def current(self) -> Optional["EventWindow"]:
        return self._frames[-1] if self._frames else None

    def push(self, window: "EventWindow") -> Optional["EventWindow"]:
        """Install ``window`` as current and return the window it displaced."""
        if window in self._frames:
            raise InvalidStateError(f"{window!r} is already on the window stack")
        previous = self.current
        self._frames.append(window)
        logger.debug("Window stack push -> depth %d", len(self._frames))
        return previous

    def pop(self, window: "EventWindow") -> Optional["EventWindow"]:
        """Remove ``window`` from the top and return the window reinstalled."""
        if not self._frames or self._frames[-1] is not window:
            raise InvalidStateError(f"{window!r} is not the current event window")
        self._frames.pop()
        logger.debug("Window stack pop -> depth %d", len(self._frames))
        return self.current
