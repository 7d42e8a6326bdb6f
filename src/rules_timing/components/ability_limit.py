from dataclasses import dataclass, field
from typing import Dict


@dataclass(slots=True)
class AbilityLimit:
    """Tracks how often each player has used an ability.

    max_uses: uses allowed per player until ``reset``.
    max_per_window: times the ability may resolve for the same event inside
      one ability window.
    """

    max_uses: int = 1
    max_per_window: int = 1
    uses: Dict[int, int] = field(default_factory=dict)

    def is_at_max(self, player: int | None) -> bool:
        if player is None:
            return False
        return self.uses.get(player, 0) >= self.max_uses

    def increment(self, player: int | None) -> None:
        if player is None:
            return
        self.uses[player] = self.uses.get(player, 0) + 1

    def reset(self) -> None:
        self.uses.clear()
