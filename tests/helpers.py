from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from rules_timing.constants import PASS
from rules_timing.events.bus import EventBus
from rules_timing.game import Game
from rules_timing.prompts import ChoiceQueue
from rules_timing.world import create_game, player_entities


class ScriptedPrompt(ChoiceQueue):
    """ChoiceQueue that passes (or takes the first forced option) when unscripted.

    Every offer is recorded in ``offers`` as ``(player, [titles])`` so tests can
    check what was put in front of each player.
    """

    def __init__(self) -> None:
        super().__init__()
        self.offers: List[Tuple[int, List[str]]] = []

    def offer_choice(self, player: int, options: Sequence[Any]) -> Any:
        self.offers.append((player, [option if isinstance(option, str) else option.title for option in options]))
        if self.has_answer(player):
            return super().offer_choice(player, options)
        if PASS in options:
            return PASS
        return options[0]

    def titles_offered(self) -> List[List[str]]:
        return [[title for title in titles if title != PASS] for _, titles in self.offers]


def make_game(prompt=None, **kwargs) -> tuple[Game, int, int]:
    """Two-player game; returns the game and both player entities, first player first."""

    game = create_game(EventBus(), players=("Crane", "Lion"), prompt=prompt, **kwargs)
    first, second = player_entities(game)
    return game, first, second


def capture(bus: EventBus, name: str) -> list[dict]:
    captured: list[dict] = []
    bus.subscribe(name, lambda sender, **payload: captured.append(payload))
    return captured
