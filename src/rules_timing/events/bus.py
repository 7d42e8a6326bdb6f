from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps lambdas and bound methods of throwaway listeners alive.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# GAME EVENTS
# ============================================================================
# Each resolved game event is also broadcast under its own name (payload: event=GameEvent)
# and, before handlers run, under "<name>:otherEffects" (payload: event=GameEvent).
EVENT_GAME_EVENT_CANCELLED = "game_event_cancelled"    # payload: event=GameEvent


# ============================================================================
# EVENT WINDOWS
# ============================================================================
EVENT_WINDOW_OPENED = "event_window_opened"            # payload: window=EventWindow, events=list[GameEvent]
EVENT_WINDOW_CLOSED = "event_window_closed"            # payload: window=EventWindow, events=list[GameEvent]
EVENT_CHECK_GAME_STATE = "check_game_state"            # payload: any_handler_ran=bool, events=list[GameEvent]
EVENT_PROVINCE_REFILL = "province_refill"              # payload: player_entity=int, location=str


# ============================================================================
# ABILITY WINDOWS
# ============================================================================
EVENT_ABILITY_WINDOW_OPENED = "ability_window_opened"  # payload: tier=AbilityTier, events=list[GameEvent], window=EventWindow
EVENT_ABILITY_TRIGGERED = "ability_triggered"          # payload: ability_entity=int, player_entity=int, tier=AbilityTier|None, event=GameEvent|None
EVENT_ABILITY_FIZZLED = "ability_fizzled"              # payload: ability_entity=int, player_entity=int, reason=str
EVENT_CHOICE_REQUESTED = "choice_requested"            # payload: player_entity=int, options=list
