"""Exception taxonomy for the timing engine.

Expected game outcomes (a failed event condition, an unpayable cost, a tier with
nothing to trigger) are never raised. Everything here signals a broken caller or
malformed data, and aborts the event window that was running when it was raised.
"""
from __future__ import annotations

from typing import Any


class TimingError(Exception):
    """Base class for engine faults."""


class InvalidStateError(TimingError):
    """A pipeline or window stack was driven out of its allowed sequence."""


class EventResolutionError(TimingError):
    """A handler was executed on an event that is already resolved or cancelled."""

    def __init__(self, event: Any, message: str) -> None:
        super().__init__(f"{message}: {getattr(event, 'name', event)!r}")
        self.event = event


class ThenRegistrationError(TimingError):
    """A then-ability was registered against an event outside its own context."""

    def __init__(self, ability_entity: int, event: Any) -> None:
        super().__init__(
            f"then ability {ability_entity} references event "
            f"{getattr(event, 'name', event)!r} which is not part of its context"
        )
        self.ability_entity = ability_entity
        self.event = event


class MalformedContextError(TimingError):
    """An ability or event carries a context missing its source or player."""

    def __init__(
        self,
        detail: str,
        *,
        ability_entity: int | None = None,
        event: Any = None,
    ) -> None:
        parts = [detail]
        if ability_entity is not None:
            parts.append(f"ability={ability_entity}")
        if event is not None:
            parts.append(f"event={getattr(event, 'name', event)!r}")
        super().__init__(" ".join(parts))
        self.ability_entity = ability_entity
        self.event = event
