import pytest

from rules_timing.components.trigger import AbilityTier
from rules_timing.errors import MalformedContextError
from rules_timing.events.bus import (
    EVENT_ABILITY_WINDOW_OPENED,
    EVENT_CHECK_GAME_STATE,
    EVENT_GAME_EVENT_CANCELLED,
    EVENT_PROVINCE_REFILL,
    EVENT_WINDOW_CLOSED,
    EVENT_WINDOW_OPENED,
)
from rules_timing.events.game_event import GameEvent
from rules_timing.factories.cards import create_card, create_triggered_ability
from rules_timing.systems.event_window import EventWindow
from tests.helpers import ScriptedPrompt, capture, make_game


def _trace(game, log, names):
    for name in names:
        game.event_bus.subscribe(name, lambda sender, _name=name, **payload: log.append(_name))


def test_event_window_runs_steps_in_canonical_order():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    log = []
    game.event_bus.subscribe(
        EVENT_ABILITY_WINDOW_OPENED, lambda sender, tier, **payload: log.append(tier.value)
    )
    _trace(game, log, [EVENT_WINDOW_OPENED, "draw:otherEffects", "draw", EVENT_CHECK_GAME_STATE, EVENT_WINDOW_CLOSED])
    event = GameEvent(
        "draw",
        lambda e: log.append("handler"),
        pre_resolution_effect=lambda e: log.append("pre_resolution"),
        player=first,
    )

    window = game.resolve([event])

    assert window.closed is True
    assert log == [
        EVENT_WINDOW_OPENED,
        "wouldinterrupt",
        "forcedinterrupt",
        "interrupt",
        "draw:otherEffects",
        "pre_resolution",
        "handler",
        "draw",
        EVENT_CHECK_GAME_STATE,
        "forcedreaction",
        "reaction",
        EVENT_WINDOW_CLOSED,
    ]
    assert game.current_event_window is None
    assert game.is_idle


def test_handlers_sorted_by_order_with_stable_ties():
    game, _, _ = make_game(prompt=ScriptedPrompt())
    log = []
    events = [
        GameEvent("c", lambda e: log.append("c"), order=2),
        GameEvent("a", lambda e: log.append("a"), order=1),
        GameEvent("b", lambda e: log.append("b"), order=2),
        GameEvent("z", lambda e: log.append("z"), order=0),
    ]
    game.resolve(events)
    assert log == ["z", "a", "c", "b"]


def test_order_can_change_before_handlers_run():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    card = create_card(game.world, "Bayushi Manipulator", first)
    log = []
    late = GameEvent("late", lambda e: log.append("late"), order=1)
    early = GameEvent("early", lambda e: log.append("early"), order=2)

    def swap(ctx):
        late.order = 5

    create_triggered_ability(game.world, card, "Swap", AbilityTier.FORCED_INTERRUPT, "late", effect=swap)
    game.resolve([late, early])
    assert log == ["early", "late"]


def test_condition_rechecked_just_before_handler():
    game, _, _ = make_game(prompt=ScriptedPrompt())
    state = {"a_done": False}
    seen = []
    log = []

    def run_a(event):
        state["a_done"] = True
        log.append("a")

    def b_condition(event):
        seen.append(state["a_done"])
        return True

    a = GameEvent("a", run_a, order=1)
    b = GameEvent("b", lambda e: log.append("b"), order=2, condition=b_condition)

    game.resolve([b, a])

    assert log == ["a", "b"]
    assert seen == [False, True], "b's last condition check must see a's effects"
    assert b.resolved and not b.cancelled


def test_sibling_handler_can_cancel_later_event():
    game, _, _ = make_game(prompt=ScriptedPrompt())
    checks = capture(game.event_bus, EVENT_CHECK_GAME_STATE)
    cancelled = capture(game.event_bus, EVENT_GAME_EVENT_CANCELLED)
    state = {"alive": True}
    kill = GameEvent("kill", lambda e: state.update(alive=False), order=1)
    strike = GameEvent("strike", lambda e: pytest.fail("strike should not resolve"), order=2,
                       condition=lambda e: state["alive"])

    window = game.resolve([kill, strike])

    assert strike.cancelled and not strike.resolved
    assert kill.resolved and not kill.cancelled
    assert [payload["event"] for payload in cancelled] == [strike]
    assert checks[0]["any_handler_ran"] is True
    assert window.events == [kill]


def test_check_game_state_reports_no_handler_when_all_cancelled():
    seen = []
    game, _, _ = make_game(
        prompt=ScriptedPrompt(),
        game_state_checker=lambda any_ran, events: seen.append((any_ran, list(events))),
    )
    event = GameEvent("bow", lambda e: pytest.fail("cancelled"), condition=lambda e: False)

    window = game.resolve([event])

    assert seen == [(False, [])]
    assert window.closed
    assert event.cancelled


def test_province_refills_deduplicate_and_run_before_close():
    refilled = []
    game, first, _ = make_game(
        prompt=ScriptedPrompt(),
        province_refiller=lambda player, location: refilled.append((player, location)),
    )
    log = []
    _trace(game, log, [EVENT_PROVINCE_REFILL, EVENT_WINDOW_CLOSED])

    def break_province(event):
        event.window.queue_province_refill(first, "province 1")
        event.window.queue_province_refill(first, "province 1")
        event.window.queue_province_refill(first, "province 2")

    game.raise_event("break_province", break_province)

    assert refilled == [(first, "province 1"), (first, "province 2")]
    assert log == [EVENT_PROVINCE_REFILL, EVENT_PROVINCE_REFILL, EVENT_WINDOW_CLOSED]


def test_nested_window_restores_previous_and_rechecks_its_events():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    card = create_card(game.world, "Matsu Berserker", first)
    state = {"standing": True}
    stack_depths = []

    def bow_it(ctx):
        def handler(event):
            stack_depths.append(len(game.window_stack))
            state["standing"] = False
        return [GameEvent("bow", handler)]

    create_triggered_ability(game.world, card, "Bow", AbilityTier.FORCED_INTERRUPT, "attack", effect=bow_it)
    attack = GameEvent("attack", lambda e: pytest.fail("attack should be cancelled"),
                       condition=lambda e: state["standing"])

    outer = game.resolve([attack])

    assert stack_depths == [2]
    assert attack.cancelled, "restoring the outer window re-checks its conditions"
    assert outer.closed
    assert game.current_event_window is None


def test_window_helpers():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    a = GameEvent("draw", player=first)
    b = GameEvent("draw")
    c = GameEvent("gain_fate")
    window = EventWindow(game, [a, b, c])

    assert window.events_named("draw") == [a, b]
    assert window.is_valid()
    assert window.cancel_events(lambda e: e.player == first) == [a]
    assert a.cancelled and a.window is None
    assert window.summary()["events"] == ["draw", "gain_fate"]

    other = EventWindow(game, [])
    assert window.transfer_events_to(other) == [b, c]
    assert other.events == [b, c] and b.window is other
    assert not window.is_valid()


def test_replacement_event_joins_the_same_window():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    card = create_card(game.world, "Kitsuki Investigator", first)
    log = []
    discard = GameEvent("discard", lambda e: log.append("discard"))

    def replace(ctx):
        ctx.event.replace_with(GameEvent("return_to_hand", lambda e: log.append("hand")))

    create_triggered_ability(game.world, card, "Instead", AbilityTier.FORCED_INTERRUPT, "discard", effect=replace)
    window = game.resolve([discard])

    assert log == ["hand"]
    assert discard.cancelled
    assert discard.resolution_event.window is window
    assert discard.is_fully_resolved()


def test_malformed_context_aborts_the_window():
    game, _, _ = make_game(prompt=ScriptedPrompt())
    orphan = create_card(game.world, "Uncontrolled", None)
    create_triggered_ability(game.world, orphan, "Broken", AbilityTier.FORCED_REACTION, "draw")
    closed = capture(game.event_bus, EVENT_WINDOW_CLOSED)
    event = GameEvent("draw")

    with pytest.raises(MalformedContextError) as info:
        game.resolve([event])

    assert info.value.event is event
    assert game.current_event_window is None
    assert closed == []
    assert event.window.closed
    assert len(event.window.pipeline) == 0
    assert game.is_idle


def test_plain_batch_closes_and_leaves_no_then_registrations():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    closed = capture(game.event_bus, EVENT_WINDOW_CLOSED)

    window = game.resolve([GameEvent("draw", player=first)])

    assert window.closed
    assert window.summary()["then_abilities"] == 0
    assert window.then_ability_registrations == []
    assert [payload["window"] for payload in closed] == [window]
    assert game.is_idle


def test_failing_handler_aborts_the_batch():
    game, _, _ = make_game(prompt=ScriptedPrompt())
    closed = capture(game.event_bus, EVENT_WINDOW_CLOSED)

    def explode(event):
        raise RuntimeError("handler failed")

    bad = GameEvent("bad", explode)
    with pytest.raises(RuntimeError):
        game.resolve([bad])

    assert bad.resolved is False
    assert bad.window.closed
    assert closed == []
    assert game.current_event_window is None
    assert game.is_idle

    later = game.resolve([GameEvent("draw")])
    assert later.previous_window is None
    assert later.closed
