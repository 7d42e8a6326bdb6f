"""Trigger component: marks an ability entity as listening on one timing tier."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Tuple

if TYPE_CHECKING:
    from rules_timing.systems.abilities.base import AbilityContext


class AbilityTier(Enum):
    """Priority tiers at which triggered abilities may be offered."""
    WOULD_INTERRUPT = "wouldinterrupt"
    FORCED_INTERRUPT = "forcedinterrupt"
    INTERRUPT = "interrupt"
    FORCED_REACTION = "forcedreaction"
    REACTION = "reaction"

    @property
    def is_forced(self) -> bool:
        return self in (AbilityTier.FORCED_INTERRUPT, AbilityTier.FORCED_REACTION)

    @property
    def is_reaction(self) -> bool:
        return self in (AbilityTier.FORCED_REACTION, AbilityTier.REACTION)


@dataclass(slots=True)
class Trigger:
    """Declares when the ability entity may be triggered.

    tier: accepts an ``AbilityTier`` or its string value; anything else raises
      ``ValueError`` when the component is built.
    event_names: names of the game events this trigger responds to.
    can_trigger: evaluated against a fresh context every time a window collects.
    collective: trigger once for the whole batch instead of once per event.
    """
    tier: AbilityTier
    event_names: Tuple[str, ...]
    can_trigger: Optional[Callable[["AbilityContext"], bool]] = None
    collective: bool = False

    def __post_init__(self) -> None:
        self.tier = AbilityTier(self.tier)
        if isinstance(self.event_names, str):
            self.event_names = (self.event_names,)
        else:
            self.event_names = tuple(self.event_names)

    def listens_to(self, event_name: str) -> bool:
        return event_name in self.event_names
