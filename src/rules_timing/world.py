from typing import Optional, Sequence

from esper import World

from rules_timing.components.player import Player
from rules_timing.events.bus import EventBus
from rules_timing.game import Game, GameStateChecker, ProvinceRefiller
from rules_timing.prompts import Prompt
from rules_timing.utils.turn_order import ensure_turn_order


def create_game(
    event_bus: EventBus | None = None,
    *,
    players: Sequence[str] = ("Player 1", "Player 2"),
    prompt: Optional[Prompt] = None,
    game_state_checker: Optional[GameStateChecker] = None,
    province_refiller: Optional[ProvinceRefiller] = None,
    order_forced_abilities: Sequence[str] = (),
) -> Game:
    world = World()
    # Seat order is creation order; the first seat is the first player.
    seats = [
        world.create_entity(Player(name=name, order_forced_abilities=name in order_forced_abilities))
        for name in players
    ]
    ensure_turn_order(world, seats)

    return Game(
        world,
        event_bus or EventBus(),
        prompt=prompt,
        game_state_checker=game_state_checker,
        province_refiller=province_refiller,
    )


def player_entities(game: Game) -> list[int]:
    """Seated player entities, first player first."""
    order = game.turn_order
    if order is None:
        return [entity for entity, _ in game.world.get_component(Player)]
    return order.ordered_from()
