from dataclasses import dataclass

PLAY_AREA = "play area"


@dataclass(slots=True)
class Card:
    """A card on the table; ``controller`` is the controlling player entity."""
    name: str
    controller: int | None
    location: str = PLAY_AREA
