"""Headless demo of the rules timing engine.

Seats two players, puts a few cards with triggered abilities on the table and
resolves a single "leaves play" batch with every optional choice declined.
"""
import logging

from rules_timing.components.card import Card
from rules_timing.components.trigger import AbilityTier
from rules_timing.events.bus import (
    EVENT_ABILITY_TRIGGERED,
    EVENT_ABILITY_WINDOW_OPENED,
    EVENT_WINDOW_CLOSED,
    EVENT_WINDOW_OPENED,
    EventBus,
)
from rules_timing.events.game_event import GameEvent
from rules_timing.factories.cards import create_card, create_triggered_ability
from rules_timing.prompts import AutoPassPrompt
from rules_timing.world import create_game, player_entities

logger = logging.getLogger("rules_timing.demo")


def _build_demo(event_bus: EventBus):
    game = create_game(event_bus, players=("Crane", "Lion"), prompt=AutoPassPrompt())
    crane, lion = player_entities(game)
    courtier = create_card(game.world, "Doji Courtier", crane)
    veteran = create_card(game.world, "Lion Veteran", lion)

    def pick_discarded(ctx):
        card = ctx.world.component_for_entity(ctx.event.card, Card)
        ctx.targets["card"] = ctx.event.card
        return card.location == "discard pile"

    def honor_loss(ctx):
        return [GameEvent("lose_honor", player=ctx.player, amount=1, card=ctx.targets["card"])]

    create_triggered_ability(
        game.world,
        veteran,
        "Stand Fast",
        AbilityTier.FORCED_REACTION,
        "leaves_play",
        target_condition=pick_discarded,
        effect=honor_loss,
    )
    create_triggered_ability(
        game.world,
        courtier,
        "Courtly Grace",
        AbilityTier.REACTION,
        "leaves_play",
    )

    def discard(event: GameEvent) -> None:
        game.world.component_for_entity(courtier, Card).location = "discard pile"

    batch = [
        GameEvent(
            "leaves_play",
            discard,
            card=courtier,
            player=crane,
            contingent_events=lambda e: [GameEvent("dishonor", player=e.player)],
        )
    ]
    return game, batch


def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    bus = EventBus()
    for name in (EVENT_WINDOW_OPENED, EVENT_WINDOW_CLOSED, EVENT_ABILITY_WINDOW_OPENED, EVENT_ABILITY_TRIGGERED):
        bus.subscribe(name, lambda sender, _name=name, **payload: logger.info("%s %s", _name, sorted(payload)))
    game, batch = _build_demo(bus)
    window = game.resolve(batch)
    logger.info("Batch closed=%s summary=%s", window.closed, window.summary())


if __name__ == "__main__":
    main()
