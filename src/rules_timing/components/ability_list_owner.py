from dataclasses import dataclass, field
from typing import List

@dataclass(slots=True)
class AbilityListOwner:
    """Associates a card entity with the ability entities printed on it."""
    ability_entities: List[int] = field(default_factory=list)
