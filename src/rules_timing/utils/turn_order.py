from __future__ import annotations

from typing import List

from esper import World

from rules_timing.components.turn_order import TurnOrder


def get_turn_order(world: World) -> TurnOrder | None:
    """Return the single TurnOrder resource if the world has one."""

    for _, order in world.get_component(TurnOrder):
        return order
    return None


def ensure_turn_order(world: World, owners: List[int]) -> TurnOrder:
    """Install or refresh the turn order with ``owners`` in seat order."""

    order = get_turn_order(world)
    if order is None:
        order = TurnOrder(owners=list(owners))
        world.create_entity(order)
        return order
    order.owners = list(owners)
    order.index = 0
    return order


def find_opponent(world: World, player: int | None) -> int | None:
    if player is None:
        return None
    order = get_turn_order(world)
    if order is None:
        return None
    return order.opponent_of(player)


def turn_position(world: World, player: int | None) -> int:
    """Seat distance from the first player; unseated players sort last."""

    order = get_turn_order(world)
    if order is None:
        return 0
    seats = order.ordered_from()
    if player not in seats:
        return len(seats)
    return seats.index(player)
