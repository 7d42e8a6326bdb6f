from dataclasses import dataclass


@dataclass(slots=True)
class Player:
    """Identifies a seated player.

    order_forced_abilities: when set, the player picks the order of simultaneous
    forced abilities instead of letting the engine take them in turn order.
    """
    name: str
    order_forced_abilities: bool = False
