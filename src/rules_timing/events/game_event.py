"""A single proposed change to game state.

Events are built by ability and game-action code, handed to an event window,
and gated by the window right up to the moment their handler runs.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional

from rules_timing.errors import EventResolutionError

if TYPE_CHECKING:
    from rules_timing.systems.abilities.base import AbilityContext
    from rules_timing.systems.event_window import EventWindow

logger = logging.getLogger(__name__)

EventCallback = Callable[["GameEvent"], Any]


class GameEvent:
    """One state transition with a condition, a handler and contingent events.

    ``condition`` is re-evaluated every time the event is about to go further
    (window entry, and again just before the handler) because sibling events in
    the same batch can invalidate it. A cancelled event never runs its handler.
    """

    def __init__(
        self,
        name: str,
        handler: Optional[EventCallback] = None,
        *,
        condition: Optional[Callable[["GameEvent"], bool]] = None,
        contingent_events: Optional[Callable[["GameEvent"], Iterable["GameEvent"]]] = None,
        pre_resolution_effect: Optional[EventCallback] = None,
        order: int = 0,
        context: Optional["AbilityContext"] = None,
        **properties: Any,
    ) -> None:
        if not name:
            raise ValueError("game events need a name")
        self.name = name
        self.order = order
        self.context = context
        self.properties: dict[str, Any] = dict(properties)
        self.cancelled = False
        self.resolved = False
        self.contingent = False
        self.window: Optional["EventWindow"] = None
        self.replacement_event: Optional[GameEvent] = None
        self._handler = handler
        self._condition = condition
        self._contingent_factory = contingent_events
        self._pre_resolution_effect = pre_resolution_effect
        self._fully_resolved_check: Optional[Callable[["GameEvent"], bool]] = None

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "resolved" if self.resolved else "pending"
        return f"<GameEvent {self.name} order={self.order} {state}>"

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    @property
    def player(self) -> Any:
        if "player" in self.properties:
            return self.properties["player"]
        return self.context.player if self.context is not None else None

    @property
    def card(self) -> Any:
        return self.properties.get("card")

    def cancel(self) -> None:
        """Mark the event as not to be executed; repeated calls are no-ops."""
        if self.cancelled or self.resolved:
            return
        self.cancelled = True
        if self.window is not None:
            self.window.remove_event(self)
        logger.debug("Event cancelled: %s", self.name)

    def check_condition(self) -> None:
        if self.cancelled or self.resolved:
            return
        if self._condition is not None and not self._condition(self):
            logger.debug("Event condition failed, cancelling: %s", self.name)
            self.cancel()

    def execute_handler(self) -> str:
        """Run the handler and return the notification name to broadcast."""
        if self.cancelled:
            raise EventResolutionError(self, "cannot execute a cancelled event")
        if self.resolved:
            raise EventResolutionError(self, "event handler already executed")
        self.resolved = True
        if self._handler is not None:
            try:
                self._handler(self)
            except Exception:
                self.resolved = False
                raise
        return self.name

    def replace_handler(self, handler: Optional[EventCallback]) -> None:
        self._handler = handler

    def replace_with(self, event: "GameEvent") -> "GameEvent":
        """Swap this event for ``event`` in the same window and cancel this one."""
        self.replacement_event = event
        if event.context is None:
            event.context = self.context
        event.order = self.order
        if self.window is not None:
            self.window.add_event(event)
        self.cancel()
        return event

    @property
    def resolution_event(self) -> "GameEvent":
        event = self
        while event.replacement_event is not None:
            event = event.replacement_event
        return event

    def set_fully_resolved_check(self, check: Optional[Callable[["GameEvent"], bool]]) -> None:
        self._fully_resolved_check = check

    def is_fully_resolved(self) -> bool:
        event = self.resolution_event
        if self._fully_resolved_check is not None:
            return self._fully_resolved_check(event)
        return event.resolved and not event.cancelled

    def create_contingent_events(self) -> List["GameEvent"]:
        if self._contingent_factory is None:
            return []
        events = list(self._contingent_factory(self) or ())
        for event in events:
            event.contingent = True
        return events

    def pre_resolution_effect(self) -> None:
        if self._pre_resolution_effect is not None:
            self._pre_resolution_effect(self)
