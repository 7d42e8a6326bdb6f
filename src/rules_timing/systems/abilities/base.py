from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from esper import World

from rules_timing.components.ability import Ability

if TYPE_CHECKING:
    from rules_timing.components.trigger import Trigger
    from rules_timing.events.game_event import GameEvent
    from rules_timing.game import Game


class Stage(Enum):
    PRE_TARGET = "pretarget"
    COST = "cost"
    TARGET = "target"
    EFFECT = "effect"


@dataclass(slots=True)
class AbilityContext:
    """Execution context shared by ability callbacks.

    source is the card entity carrying the ability and player the entity of its
    controller. event is the game event that made a triggered ability eligible;
    events is the whole set the window was looking at.
    """

    game: "Game"
    ability_entity: int
    ability: Ability
    source: Optional[int]
    player: Optional[int]
    trigger: Optional["Trigger"] = None
    event: Optional["GameEvent"] = None
    events: List["GameEvent"] = field(default_factory=list)
    targets: dict[str, Any] = field(default_factory=dict)
    stage: Stage = Stage.PRE_TARGET

    @property
    def world(self) -> World:
        return self.game.world
