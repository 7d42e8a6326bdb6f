"""Event windows: one batch of game events driven through every timing tier.

The step order is fixed (see ``EVENT_WINDOW_STEPS``). A window installs itself
on the game's window stack when it starts and removes itself when it finishes,
so ability code can always ask the game which window is resolving right now.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

from rules_timing.components.trigger import AbilityTier
from rules_timing.constants import EVENT_WINDOW_STEPS, OTHER_EFFECTS_SUFFIX, THEN_WINDOW_TIERS
from rules_timing.errors import ThenRegistrationError
from rules_timing.events.bus import (
    EVENT_GAME_EVENT_CANCELLED,
    EVENT_WINDOW_CLOSED,
    EVENT_WINDOW_OPENED,
)
from rules_timing.pipeline.steps import BaseStep, BaseStepWithPipeline, SimpleStep
from rules_timing.systems.ability_window import ForcedTriggeredAbilityWindow, TriggeredAbilityWindow

if TYPE_CHECKING:
    from rules_timing.events.game_event import GameEvent
    from rules_timing.game import Game
    from rules_timing.systems.abilities.base import AbilityContext

logger = logging.getLogger(__name__)


def _fully_resolved(event: "GameEvent") -> bool:
    return event.is_fully_resolved()


@dataclass(slots=True)
class ThenAbilityRegistration:
    """An ability waiting for ``events`` to finish resolving."""

    ability_entity: int
    context: "AbilityContext"
    condition: Callable[["GameEvent"], bool] = _fully_resolved
    events: List["GameEvent"] = field(default_factory=list)

    def is_satisfied(self) -> bool:
        return all(self.condition(event) for event in self.events)


@dataclass(frozen=True, slots=True)
class ProvinceRefill:
    player: int
    location: str


class EventWindow(BaseStepWithPipeline):
    def __init__(self, game: "Game", events: Iterable["GameEvent"]) -> None:
        super().__init__(game)
        self.events: List["GameEvent"] = []
        self.then_ability_registrations: List[ThenAbilityRegistration] = []
        self.province_refills: List[ProvinceRefill] = []
        self.previous_window: Optional[EventWindow] = None
        self.handlers_executed: List["GameEvent"] = []
        self.closed = False
        for event in events:
            self.add_event(event)
        self.pipeline.initialize(self._build_steps())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {[event.name for event in self.events]}>"

    def _build_steps(self) -> List[BaseStep]:
        steps: List[BaseStep] = []
        for step_name in EVENT_WINDOW_STEPS:
            try:
                tier = AbilityTier(step_name)
            except ValueError:
                steps.append(SimpleStep(self.game, getattr(self, step_name), step_name))
                continue
            if self.opens_tier(tier):
                steps.append(SimpleStep(self.game, partial(self.open_window, tier), tier.value))
        return steps

    def opens_tier(self, tier: AbilityTier) -> bool:
        return True

    # Driving

    def continue_step(self) -> bool:
        try:
            return super().continue_step()
        except Exception:
            self.abort()
            raise

    def abort(self) -> None:
        """Drop every remaining step and leave the window stack."""
        logger.debug("Aborting %r", self)
        self.pipeline.clear()
        self.closed = True
        if self.game.window_stack.current is self:
            self.game.window_stack.pop(self)

    def queue_simple_step(self, handler: Callable[[], Any], name: Optional[str] = None) -> None:
        self.queue_step(SimpleStep(self.game, handler, name))

    # Event bookkeeping

    @property
    def active_events(self) -> List["GameEvent"]:
        return [event for event in self.events if not event.cancelled]

    def add_event(self, event: "GameEvent") -> "GameEvent":
        if event in self.events:
            return event
        if event.window is not None and event.window is not self:
            event.window.remove_event(event)
        event.window = self
        self.events.append(event)
        logger.debug("Event %s added to %r", event.name, self)
        return event

    def remove_event(self, event: "GameEvent") -> "GameEvent":
        if event not in self.events:
            return event
        self.events.remove(event)
        if event.window is self:
            event.window = None
        if event.cancelled:
            self.game.emit(EVENT_GAME_EVENT_CANCELLED, event=event)
        logger.debug("Event %s removed from %r", event.name, self)
        return event

    def transfer_events_to(self, window: "EventWindow") -> List["GameEvent"]:
        moved = [event for event in self.events if not event.cancelled]
        for event in moved:
            self.events.remove(event)
            event.window = None
            window.add_event(event)
        logger.debug("Transferred %d events from %r to %r", len(moved), self, window)
        return moved

    def events_named(self, name: str) -> List["GameEvent"]:
        return [event for event in self.active_events if event.name == name]

    def cancel_events(self, predicate: Callable[["GameEvent"], bool]) -> List["GameEvent"]:
        cancelled = [event for event in self.active_events if predicate(event)]
        for event in cancelled:
            event.cancel()
        return cancelled

    def is_valid(self) -> bool:
        return bool(self.active_events)

    def summary(self) -> Dict[str, Any]:
        return {
            "window": type(self).__name__,
            "events": [event.name for event in self.active_events],
            "resolved": [event.name for event in self.events if event.resolved],
            "then_abilities": len(self.then_ability_registrations),
            "province_refills": [(refill.player, refill.location) for refill in self.province_refills],
            "closed": self.closed,
        }

    def check_event_condition(self) -> None:
        for event in list(self.events):
            event.check_condition()

    # Side tables

    def add_then_ability(
        self,
        ability_entity: int,
        context: "AbilityContext",
        condition: Optional[Callable[["GameEvent"], bool]] = None,
        events: Optional[Iterable["GameEvent"]] = None,
    ) -> ThenAbilityRegistration:
        """Resolve ``ability_entity`` after ``events`` have fully resolved.

        Every event must belong to ``context``: either built by it or among the
        events it was triggered by. Anything else raises ThenRegistrationError.
        """
        watched = list(events) if events is not None else [
            event for event in self.events if event.context is context
        ]
        for event in watched:
            if event.context is not context and event not in context.events:
                raise ThenRegistrationError(ability_entity, event)
        registration = ThenAbilityRegistration(
            ability_entity=ability_entity,
            context=context,
            condition=condition or _fully_resolved,
            events=watched,
        )
        self.then_ability_registrations.append(registration)
        logger.debug("Then ability %s registered on %d events", ability_entity, len(watched))
        return registration

    def queue_province_refill(self, player: int, location: str) -> None:
        refill = ProvinceRefill(player, location)
        if refill not in self.province_refills:
            self.province_refills.append(refill)

    # Steps

    def set_current(self) -> None:
        self.previous_window = self.game.window_stack.push(self)
        self.game.emit(EVENT_WINDOW_OPENED, window=self, events=list(self.events))

    def check_condition(self) -> None:
        self.check_event_condition()

    def open_window(self, tier: AbilityTier, events_to_exclude: Iterable["GameEvent"] = ()) -> None:
        if not self.active_events:
            return
        window_cls = ForcedTriggeredAbilityWindow if tier.is_forced else TriggeredAbilityWindow
        self.queue_step(window_cls(self.game, tier, self, events_to_exclude))

    def create_contingent_events(self) -> None:
        originals = self.active_events
        contingent: List["GameEvent"] = []
        for event in originals:
            contingent.extend(event.create_contingent_events())
        if not contingent:
            return
        # The originals already had their would-interrupt window.
        self.open_window(AbilityTier.WOULD_INTERRUPT, events_to_exclude=originals)
        for event in contingent:
            if event.context is None:
                event.context = next((e.context for e in originals if e.context is not None), None)
            self.add_event(event)

    def other_effects(self) -> None:
        for event in self.active_events:
            self.game.emit(f"{event.name}:{OTHER_EFFECTS_SUFFIX}", event=event)

    def pre_resolution_effects(self) -> None:
        for event in self.active_events:
            event.pre_resolution_effect()

    def execute_handlers(self) -> None:
        self.events.sort(key=lambda event: event.order)
        for event in list(self.events):
            if event.resolved:
                continue
            event.check_condition()
            if event.cancelled:
                logger.info("Skipping cancelled event %s", event.name)
                continue
            name = event.execute_handler()
            self.handlers_executed.append(event)
            logger.debug("Handler executed for %s", name)
            self.game.emit(name, event=event)

    def check_game_state(self) -> None:
        self.game.check_game_state(bool(self.handlers_executed), list(self.events))

    def then_abilities(self) -> None:
        registrations, self.then_ability_registrations = self.then_ability_registrations, []
        for registration in registrations:
            if not registration.is_satisfied():
                logger.debug("Then ability %s discarded", registration.ability_entity)
                continue
            context = self.game.create_ability_context(
                registration.ability_entity,
                player=registration.context.player,
                event=registration.events[0] if registration.events else None,
                events=registration.events,
            )
            self.game.resolve_ability(context, then=True)

    def restore_previous(self) -> None:
        refills, self.province_refills = self.province_refills, []
        for refill in refills:
            self.game.refill_province(refill.player, refill.location)
        previous = self.game.window_stack.pop(self)
        self.closed = True
        self.game.emit(EVENT_WINDOW_CLOSED, window=self, events=list(self.events))
        if previous is not None:
            previous.check_event_condition()


class ThenEventWindow(EventWindow):
    """Window for events produced by a then-ability.

    Reaction tiers are left to the parent batch; whatever events survive here
    are handed to the parent window when this one finishes.
    """

    def opens_tier(self, tier: AbilityTier) -> bool:
        return tier in THEN_WINDOW_TIERS

    def restore_previous(self) -> None:
        previous = self.previous_window
        if previous is None or previous.closed:
            logger.warning("%r has no open parent window; its events are dropped", self)
        else:
            self.transfer_events_to(previous)
        super().restore_previous()
