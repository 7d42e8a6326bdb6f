from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from rules_timing.components.ability_limit import AbilityLimit
from rules_timing.components.card import PLAY_AREA

if TYPE_CHECKING:
    from rules_timing.events.game_event import GameEvent
    from rules_timing.systems.abilities.base import AbilityContext


@dataclass(slots=True)
class AbilityCost:
    """Cost attached to an ability.

    can_pay: predicate checked after the ability has been chosen.
    pay: commits the cost; only called once ``can_pay`` held.
    """
    can_pay: Callable[["AbilityContext"], bool]
    pay: Callable[["AbilityContext"], None]


@dataclass(slots=True)
class Ability:
    """Represents a resolvable card ability.

    Fields:
      title: Display / reference name.
      effect: Called with the ability context when the ability resolves; may
        return game events, which are resolved in a new event window.
      cost: Optional cost paid before the effect runs.
      target_condition: Returns False when the ability has no legal target.
      limit: Optional use limit shared by every resolution of this ability.
      location: Where the source card must be for the ability to be used.
      then: Ability entity resolved once every event this ability produced has
        fully resolved.
    """
    title: str
    effect: Optional[Callable[["AbilityContext"], Optional[Iterable["GameEvent"]]]] = None
    cost: Optional[AbilityCost] = None
    target_condition: Optional[Callable[["AbilityContext"], bool]] = None
    limit: Optional[AbilityLimit] = None
    location: str = PLAY_AREA
    then: Optional[int] = None
