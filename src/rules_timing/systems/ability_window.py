"""Tiered triggered-ability windows.

One window instance handles one tier for one event window. Eligible abilities
are collected again on every continue, so an interrupt that resolved earlier in
the same tier can make further abilities legal (or illegal) straight away. The
window completes once a collection pass leaves nothing to resolve.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Tuple

from rules_timing.components.ability import Ability
from rules_timing.components.card import Card
from rules_timing.components.player import Player
from rules_timing.components.trigger import AbilityTier, Trigger
from rules_timing.constants import PASS
from rules_timing.events.bus import EVENT_ABILITY_WINDOW_OPENED, EVENT_CHOICE_REQUESTED
from rules_timing.pipeline.steps import BaseStep
from rules_timing.prompts import INCOMPLETE, AbilityChoice
from rules_timing.systems.abilities.resolver import AbilityResolver

if TYPE_CHECKING:
    from rules_timing.events.game_event import GameEvent
    from rules_timing.game import Game
    from rules_timing.systems.event_window import EventWindow

logger = logging.getLogger(__name__)

ChoiceKey = Tuple[int, Optional["GameEvent"]]


class ForcedTriggeredAbilityWindow(BaseStep):
    """Resolves every eligible ability of one tier, taking them in turn order.

    Forced tiers never offer a pass. A player flagged ``order_forced_abilities``
    picks which of their simultaneous forced abilities goes first.
    """

    def __init__(
        self,
        game: "Game",
        tier: AbilityTier | str,
        window: "EventWindow",
        events_to_exclude: Iterable["GameEvent"] = (),
    ) -> None:
        super().__init__(game)
        self.tier = AbilityTier(tier)
        self.window = window
        self.events_to_exclude = list(events_to_exclude)
        self.choices: List[AbilityChoice] = []
        self._resolved: Counter[ChoiceKey] = Counter()
        self._fizzled: set[ChoiceKey] = set()
        self._announced = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.tier.value}>"

    @property
    def name(self) -> str:
        return self.tier.value

    @property
    def events(self) -> List["GameEvent"]:
        return [
            event
            for event in self.window.events
            if not event.cancelled and event not in self.events_to_exclude
        ]

    def continue_step(self) -> bool:
        self._announce()
        self.choices = self.collect_choices()
        if not self.choices:
            return True
        ordered = sorted(self.choices, key=self._forced_order)
        choice = self._select_forced(ordered)
        if choice is INCOMPLETE:
            return False
        self.resolve_choice(choice)
        return False

    def collect_choices(self) -> List[AbilityChoice]:
        events = self.events
        if not events:
            return []
        choices: List[AbilityChoice] = []
        for ability_entity, ability, trigger in self.game.triggered_abilities(self.tier):
            matching = [event for event in events if trigger.listens_to(event.name)]
            if not matching:
                continue
            if trigger.collective:
                choice = self._eligible(ability_entity, ability, trigger, matching[0], matching, key_event=None)
                if choice is not None:
                    choices.append(choice)
                continue
            for event in matching:
                choice = self._eligible(ability_entity, ability, trigger, event, events, key_event=event)
                if choice is not None:
                    choices.append(choice)
        return choices

    def _eligible(
        self,
        ability_entity: int,
        ability: Ability,
        trigger: Trigger,
        event: "GameEvent",
        events: List["GameEvent"],
        *,
        key_event: Optional["GameEvent"],
    ) -> AbilityChoice | None:
        key = (ability_entity, key_event)
        if key in self._fizzled:
            return None
        per_window = ability.limit.max_per_window if ability.limit is not None else 1
        if self._resolved[key] >= per_window:
            return None
        context = self.game.create_ability_context(ability_entity, event=event, events=events)
        if ability.limit is not None and ability.limit.is_at_max(context.player):
            return None
        try:
            card = self.game.world.component_for_entity(context.source, Card)
        except KeyError:
            return None
        if card.location != ability.location:
            return None
        if trigger.can_trigger is not None and not trigger.can_trigger(context):
            return None
        return AbilityChoice(
            ability_entity=ability_entity,
            title=ability.title,
            player_entity=context.player,
            event=key_event,
            context=context,
        )

    def resolve_choice(self, choice: AbilityChoice) -> AbilityResolver:
        """Queue ``choice`` for resolution followed by the bookkeeping step."""
        logger.debug("%s resolving %s for player %s", self.tier.value, choice.title, choice.player_entity)
        resolver = AbilityResolver(self.game, choice.context)
        self.window.queue_step(resolver)
        self.window.queue_simple_step(lambda: self._after_resolution(choice, resolver), "post_resolution")
        return resolver

    def _after_resolution(self, choice: AbilityChoice, resolver: AbilityResolver) -> None:
        key = (choice.ability_entity, choice.event)
        if resolver.pass_priority:
            self._resolved[key] += 1
            self.on_resolved(choice)
        else:
            self._fizzled.add(key)

    def on_resolved(self, choice: AbilityChoice) -> None:
        pass

    def _forced_order(self, choice: AbilityChoice) -> tuple[int, int]:
        return (self.game.turn_position(choice.player_entity), choice.ability_entity)

    def _select_forced(self, ordered: List[AbilityChoice]) -> Any:
        player = ordered[0].player_entity
        own = [choice for choice in ordered if choice.player_entity == player]
        if len(own) < 2 or not self._orders_forced_abilities(player):
            return ordered[0]
        return self._offer(player, own)

    def _orders_forced_abilities(self, player: int | None) -> bool:
        if player is None:
            return False
        try:
            return self.game.world.component_for_entity(player, Player).order_forced_abilities
        except KeyError:
            return False

    def _offer(self, player: int, options: List[Any]) -> Any:
        selection = self.game.prompt.offer_choice(player, options)
        if selection is INCOMPLETE:
            self.game.emit(EVENT_CHOICE_REQUESTED, player_entity=player, options=options)
        return selection

    def _announce(self) -> None:
        if self._announced:
            return
        self._announced = True
        logger.debug("Ability window %s opened over %d events", self.tier.value, len(self.events))
        self.game.emit(EVENT_ABILITY_WINDOW_OPENED, tier=self.tier, events=self.events, window=self.window)


class TriggeredAbilityWindow(ForcedTriggeredAbilityWindow):
    """Optional tier: players alternate, each triggering one ability or passing.

    The first player in turn order has priority. The window closes after both
    players pass in a row, or straight away when nobody has anything to trigger.
    """

    def __init__(
        self,
        game: "Game",
        tier: AbilityTier | str,
        window: "EventWindow",
        events_to_exclude: Iterable["GameEvent"] = (),
    ) -> None:
        super().__init__(game, tier, window, events_to_exclude)
        self.current_player = game.first_player
        self.prev_player_passed = False

    def continue_step(self) -> bool:
        self._announce()
        self.choices = self.collect_choices()
        if not self.choices:
            return True
        while True:
            own = [choice for choice in self.choices if choice.player_entity == self.current_player]
            if not own:
                if self._pass_priority():
                    return True
                continue
            selection = self._offer(self.current_player, own + [PASS])
            if selection is INCOMPLETE:
                return False
            if isinstance(selection, str) and selection == PASS:
                logger.debug("Player %s passed at %s", self.current_player, self.tier.value)
                if self._pass_priority():
                    return True
                continue
            self.resolve_choice(selection)
            return False

    def _pass_priority(self) -> bool:
        """Hand priority over; True once both players have passed in a row."""
        opponent = self.game.opponent_of(self.current_player)
        if self.prev_player_passed or opponent is None:
            return True
        self.current_player = opponent
        self.prev_player_passed = True
        return False

    def on_resolved(self, choice: AbilityChoice) -> None:
        self.prev_player_passed = False
        opponent = self.game.opponent_of(choice.player_entity)
        self.current_player = opponent if opponent is not None else choice.player_entity
