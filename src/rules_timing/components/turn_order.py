from dataclasses import dataclass, field
from typing import List

@dataclass(slots=True)
class TurnOrder:
    """Stores ordered list of player entities and the index of the first player."""
    owners: List[int] = field(default_factory=list)
    index: int = 0

    def current(self) -> int | None:
        if not self.owners:
            return None
        return self.owners[self.index % len(self.owners)]

    def advance(self):
        if self.owners:
            self.index = (self.index + 1) % len(self.owners)

    def ordered_from(self, owner: int | None = None) -> List[int]:
        """Owners in seat order starting at ``owner`` (defaults to the first player)."""
        if not self.owners:
            return []
        start = self.owners.index(owner) if owner in self.owners else self.index % len(self.owners)
        return self.owners[start:] + self.owners[:start]

    def opponent_of(self, owner: int) -> int | None:
        if owner not in self.owners or len(self.owners) < 2:
            return None
        position = self.owners.index(owner)
        return self.owners[(position + 1) % len(self.owners)]
