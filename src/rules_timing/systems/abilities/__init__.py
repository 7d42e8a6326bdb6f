from rules_timing.systems.abilities.base import AbilityContext, Stage
from rules_timing.systems.abilities.resolver import AbilityResolver

__all__ = [
    "AbilityContext",
    "AbilityResolver",
    "Stage",
]
