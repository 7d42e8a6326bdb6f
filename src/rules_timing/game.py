"""Game coordinator: owns the step pipeline and the current-window stack.

Ability and effect code talks to the engine through this object. Nothing here
blocks: ``continue_processing`` returns False whenever a step is waiting on a
player, and the outer loop calls it again once the prompt has an answer.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Sequence, Tuple

from esper import World

from rules_timing.components.ability import Ability
from rules_timing.components.ability_list_owner import AbilityListOwner
from rules_timing.components.card import Card
from rules_timing.components.trigger import AbilityTier, Trigger
from rules_timing.components.turn_order import TurnOrder
from rules_timing.errors import MalformedContextError
from rules_timing.events.bus import EVENT_CHECK_GAME_STATE, EVENT_PROVINCE_REFILL, EventBus
from rules_timing.events.game_event import GameEvent
from rules_timing.pipeline.pipeline import GamePipeline
from rules_timing.prompts import ChoiceQueue, Prompt
from rules_timing.systems.abilities import AbilityContext, AbilityResolver
from rules_timing.systems.event_window import EventWindow, ThenEventWindow
from rules_timing.systems.window_stack import WindowStack
from rules_timing.utils.turn_order import find_opponent, get_turn_order, turn_position

if TYPE_CHECKING:
    from rules_timing.pipeline.pipeline import Step

logger = logging.getLogger(__name__)

GameStateChecker = Callable[[bool, List[GameEvent]], None]
ProvinceRefiller = Callable[[int, str], None]


class Game:
    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        prompt: Optional[Prompt] = None,
        game_state_checker: Optional[GameStateChecker] = None,
        province_refiller: Optional[ProvinceRefiller] = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.prompt: Prompt = prompt if prompt is not None else ChoiceQueue()
        self.game_state_checker = game_state_checker
        self.province_refiller = province_refiller
        self.pipeline = GamePipeline(name="game")
        self.window_stack = WindowStack()

    # Pipeline

    def emit(self, name: str, **payload: Any) -> None:
        self.event_bus.emit(name, **payload)

    def queue_step(self, step: "Step") -> None:
        self.pipeline.queue_step(step)

    def continue_processing(self) -> bool:
        return self.pipeline.continue_processing()

    @property
    def is_idle(self) -> bool:
        return len(self.pipeline) == 0

    # Event windows

    @property
    def current_event_window(self) -> Optional[EventWindow]:
        return self.window_stack.current

    def open_event_window(self, events: Iterable[GameEvent]) -> EventWindow:
        window = EventWindow(self, events)
        self.queue_step(window)
        return window

    def open_then_event_window(self, events: Iterable[GameEvent]) -> EventWindow:
        if self.current_event_window is None:
            return self.open_event_window(events)
        window = ThenEventWindow(self, events)
        self.queue_step(window)
        return window

    def resolve(self, events: Iterable[GameEvent]) -> EventWindow:
        """Queue a window for ``events`` and drive it until it completes or waits.

        Called from inside a running step, the window is only queued and runs
        once that step hands control back to its pipeline.
        """
        was_idle = self.is_idle
        window = self.open_event_window(events)
        if was_idle:
            self.continue_processing()
        return window

    def raise_event(self, name: str, handler: Optional[Callable[[GameEvent], Any]] = None, **properties: Any) -> GameEvent:
        event = GameEvent(name, handler, **properties)
        self.resolve([event])
        return event

    # Abilities

    def resolve_ability(self, context: AbilityContext, *, then: bool = False) -> AbilityResolver:
        resolver = AbilityResolver(self, context, then=then)
        self.queue_step(resolver)
        return resolver

    def create_ability_context(
        self,
        ability_entity: int,
        *,
        player: Optional[int] = None,
        event: Optional[GameEvent] = None,
        events: Sequence[GameEvent] = (),
    ) -> AbilityContext:
        try:
            ability = self.world.component_for_entity(ability_entity, Ability)
        except KeyError as exc:
            raise MalformedContextError("entity has no ability", ability_entity=ability_entity, event=event) from exc
        source = self.ability_source(ability_entity)
        if source is None:
            raise MalformedContextError("ability is not on any card", ability_entity=ability_entity, event=event)
        if player is None:
            try:
                player = self.world.component_for_entity(source, Card).controller
            except KeyError:
                player = None
        if player is None:
            raise MalformedContextError("ability source has no controller", ability_entity=ability_entity, event=event)
        trigger = None
        if self.world.has_component(ability_entity, Trigger):
            trigger = self.world.component_for_entity(ability_entity, Trigger)
        return AbilityContext(
            game=self,
            ability_entity=ability_entity,
            ability=ability,
            source=source,
            player=player,
            trigger=trigger,
            event=event,
            events=list(events) if events else ([event] if event is not None else []),
        )

    def ability_source(self, ability_entity: int) -> Optional[int]:
        for card_entity, owner in self.world.get_component(AbilityListOwner):
            if ability_entity in owner.ability_entities:
                return card_entity
        return None

    def triggered_abilities(self, tier: AbilityTier) -> List[Tuple[int, Ability, Trigger]]:
        """Every ability entity listening on ``tier``, in registration order."""
        found = [
            (entity, ability, trigger)
            for entity, (ability, trigger) in self.world.get_components(Ability, Trigger)
            if trigger.tier is tier
        ]
        found.sort(key=lambda item: item[0])
        return found

    # Players

    @property
    def turn_order(self) -> Optional[TurnOrder]:
        return get_turn_order(self.world)

    @property
    def first_player(self) -> Optional[int]:
        order = self.turn_order
        return order.current() if order is not None else None

    def opponent_of(self, player: Optional[int]) -> Optional[int]:
        return find_opponent(self.world, player)

    def turn_position(self, player: Optional[int]) -> int:
        return turn_position(self.world, player)

    # Collaborators

    def check_game_state(self, any_handler_ran: bool, events: List[GameEvent]) -> None:
        self.emit(EVENT_CHECK_GAME_STATE, any_handler_ran=any_handler_ran, events=events)
        if self.game_state_checker is not None:
            self.game_state_checker(any_handler_ran, events)

    def refill_province(self, player: int, location: str) -> None:
        logger.debug("Refilling %s for player %s", location, player)
        self.emit(EVENT_PROVINCE_REFILL, player_entity=player, location=location)
        if self.province_refiller is not None:
            self.province_refiller(player, location)
