from __future__ import annotations

from typing import Callable, Iterable, Optional

from esper import World

from rules_timing.components.ability import Ability, AbilityCost
from rules_timing.components.ability_limit import AbilityLimit
from rules_timing.components.ability_list_owner import AbilityListOwner
from rules_timing.components.card import PLAY_AREA, Card
from rules_timing.components.trigger import AbilityTier, Trigger


def create_card(world: World, name: str, controller: int | None, *, location: str = PLAY_AREA) -> int:
    return world.create_entity(
        Card(name=name, controller=controller, location=location),
        AbilityListOwner(),
    )


def create_ability(
    world: World,
    card_entity: int,
    title: str,
    *,
    effect: Optional[Callable] = None,
    cost: Optional[AbilityCost] = None,
    target_condition: Optional[Callable] = None,
    limit: Optional[AbilityLimit] = None,
    location: str = PLAY_AREA,
    then: Optional[int] = None,
) -> int:
    """Create an untriggered ability on ``card_entity`` (used for then-abilities)."""
    entity = world.create_entity(
        Ability(
            title=title,
            effect=effect,
            cost=cost,
            target_condition=target_condition,
            limit=limit,
            location=location,
            then=then,
        )
    )
    _attach(world, card_entity, entity)
    return entity


def create_triggered_ability(
    world: World,
    card_entity: int,
    title: str,
    tier: AbilityTier | str,
    event_names: Iterable[str] | str,
    *,
    can_trigger: Optional[Callable] = None,
    collective: bool = False,
    **ability_kwargs,
) -> int:
    """Create an ability that listens for ``event_names`` at ``tier``.

    The tier is validated before anything is added to the world, so a bad tier
    tag raises ValueError and leaves no orphan entity behind.
    """
    trigger = Trigger(tier=tier, event_names=event_names, can_trigger=can_trigger, collective=collective)
    entity = create_ability(world, card_entity, title, **ability_kwargs)
    world.add_component(entity, trigger)
    return entity


def _attach(world: World, card_entity: int, ability_entity: int) -> None:
    try:
        owner = world.component_for_entity(card_entity, AbilityListOwner)
    except KeyError:
        owner = AbilityListOwner()
        world.add_component(card_entity, owner)
    owner.ability_entities.append(ability_entity)
