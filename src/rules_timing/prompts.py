"""Player choice collaborators.

Ability windows never block waiting for a player. They call
``offer_choice(player, options)`` and either get a selection back or
``INCOMPLETE``; in the latter case the window stays at the head of the
pipeline and asks again the next time the game loop continues.
"""
from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Deque, Dict, List, Optional, Protocol, Sequence, Tuple

from rules_timing.constants import PASS

if TYPE_CHECKING:
    from rules_timing.events.game_event import GameEvent
    from rules_timing.systems.abilities.base import AbilityContext


class _Incomplete:
    def __repr__(self) -> str:
        return "INCOMPLETE"

    def __bool__(self) -> bool:
        return False


INCOMPLETE = _Incomplete()


@dataclass(eq=True)
class AbilityChoice:
    """One ability a player may trigger, attributed to the event that enabled it."""

    ability_entity: int
    title: str
    player_entity: Optional[int]
    event: Optional["GameEvent"] = None
    context: Optional["AbilityContext"] = field(default=None, compare=False, repr=False)


class Prompt(Protocol):
    def offer_choice(self, player: int, options: Sequence[Any]) -> Any:
        ...


class AutoPassPrompt:
    """Declines every optional choice; forced ordering takes the first option."""

    def offer_choice(self, player: int, options: Sequence[Any]) -> Any:
        if PASS in options:
            return PASS
        return options[0] if options else INCOMPLETE


class ChoiceQueue:
    """Answers prompts from selections submitted ahead of time.

    A selection may be the option itself, its title, its index in the offered
    options, or ``PASS``. When a player has nothing queued the request is
    recorded in ``pending`` and ``INCOMPLETE`` is returned.
    """

    def __init__(self) -> None:
        self._answers: Dict[int, Deque[Any]] = defaultdict(deque)
        self.pending: Optional[Tuple[int, List[Any]]] = None
        self.history: List[Tuple[int, Any]] = []

    def submit(self, player: int, selection: Any) -> None:
        self._answers[player].append(selection)

    def has_answer(self, player: int) -> bool:
        return bool(self._answers.get(player))

    def offer_choice(self, player: int, options: Sequence[Any]) -> Any:
        answers = self._answers.get(player)
        if not answers:
            self.pending = (player, list(options))
            return INCOMPLETE
        selection = self._match(answers.popleft(), options)
        self.pending = None
        self.history.append((player, selection))
        return selection

    @staticmethod
    def _match(selection: Any, options: Sequence[Any]) -> Any:
        if isinstance(selection, int) and not isinstance(selection, bool):
            if 0 <= selection < len(options):
                return options[selection]
            raise ValueError(f"choice index {selection} out of range")
        if selection in options:
            return options[options.index(selection)]
        for option in options:
            if getattr(option, "title", None) == selection:
                return option
        raise ValueError(f"{selection!r} is not one of the offered options")
