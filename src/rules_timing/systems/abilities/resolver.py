from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from rules_timing.components.card import Card
from rules_timing.errors import MalformedContextError
from rules_timing.events.bus import EVENT_ABILITY_FIZZLED, EVENT_ABILITY_TRIGGERED
from rules_timing.pipeline.steps import BaseStepWithPipeline, SimpleStep
from rules_timing.systems.abilities.base import AbilityContext, Stage

if TYPE_CHECKING:
    from rules_timing.events.game_event import GameEvent
    from rules_timing.game import Game

logger = logging.getLogger(__name__)


class AbilityResolver(BaseStepWithPipeline):
    """Resolves one chosen ability: context check, costs, targets, effect.

    An ability that cannot pay its cost or finds no legal target is cancelled
    before anything is committed; ``pass_priority`` stays False so the window
    that offered it treats it as never triggered.
    """

    def __init__(self, game: "Game", context: AbilityContext, *, then: bool = False) -> None:
        super().__init__(game)
        self.context = context
        self.then = then
        self.cancelled = False
        self.pass_priority = False
        self.fizzle_reason: str | None = None
        self.events: List["GameEvent"] = []
        self.pipeline.initialize([
            SimpleStep(game, self.check_context, "check_context"),
            SimpleStep(game, self.check_costs, "check_costs"),
            SimpleStep(game, self.check_targets, "check_targets"),
            SimpleStep(game, self.pay_costs, "pay_costs"),
            SimpleStep(game, self.execute_effect, "execute_effect"),
        ])

    def __repr__(self) -> str:
        return f"<AbilityResolver {self.context.ability.title}>"

    def continue_step(self) -> bool:
        try:
            return super().continue_step()
        except Exception:
            logger.debug("Aborting %r", self)
            self.cancelled = True
            self.pipeline.clear()
            raise

    def check_context(self) -> None:
        ctx = self.context
        if ctx.source is None:
            raise MalformedContextError("ability context has no source", ability_entity=ctx.ability_entity, event=ctx.event)
        if ctx.player is None:
            raise MalformedContextError("ability context has no player", ability_entity=ctx.ability_entity, event=ctx.event)
        try:
            card = self.game.world.component_for_entity(ctx.source, Card)
        except KeyError as exc:
            raise MalformedContextError(
                "ability source is not a card", ability_entity=ctx.ability_entity, event=ctx.event
            ) from exc
        if card.location != ctx.ability.location:
            self._fizzle(f"source is in {card.location}")

    def check_costs(self) -> None:
        if self.cancelled:
            return
        self.context.stage = Stage.COST
        cost = self.context.ability.cost
        if cost is not None and not cost.can_pay(self.context):
            self._fizzle("cost cannot be paid")

    def check_targets(self) -> None:
        if self.cancelled:
            return
        self.context.stage = Stage.TARGET
        condition = self.context.ability.target_condition
        if condition is not None and not condition(self.context):
            self._fizzle("no legal targets")

    def pay_costs(self) -> None:
        if self.cancelled:
            return
        cost = self.context.ability.cost
        if cost is not None:
            cost.pay(self.context)
        self.pass_priority = True
        limit = self.context.ability.limit
        if limit is not None:
            limit.increment(self.context.player)
        trigger = self.context.trigger
        logger.info("%s triggered by player %s", self.context.ability.title, self.context.player)
        self.game.emit(
            EVENT_ABILITY_TRIGGERED,
            ability_entity=self.context.ability_entity,
            player_entity=self.context.player,
            tier=trigger.tier if trigger is not None else None,
            event=self.context.event,
        )

    def execute_effect(self) -> None:
        if self.cancelled:
            return
        self.context.stage = Stage.EFFECT
        effect = self.context.ability.effect
        if effect is None:
            return
        self.events = [event for event in (effect(self.context) or ()) if not event.cancelled]
        for event in self.events:
            if event.context is None:
                event.context = self.context
        if not self.events:
            return
        if self.then:
            window = self.game.open_then_event_window(self.events)
        else:
            window = self.game.open_event_window(self.events)
        if self.context.ability.then is not None:
            window.add_then_ability(self.context.ability.then, self.context, events=self.events)

    def _fizzle(self, reason: str) -> None:
        self.cancelled = True
        self.fizzle_reason = reason
        logger.info("%s fizzled: %s", self.context.ability.title, reason)
        self.game.emit(
            EVENT_ABILITY_FIZZLED,
            ability_entity=self.context.ability_entity,
            player_entity=self.context.player,
            reason=reason,
        )
