import logging

import pytest

from rules_timing.components.trigger import AbilityTier
from rules_timing.errors import ThenRegistrationError
from rules_timing.events.bus import EVENT_ABILITY_WINDOW_OPENED, EVENT_WINDOW_CLOSED
from rules_timing.events.game_event import GameEvent
from rules_timing.factories.cards import create_ability, create_card, create_triggered_ability
from rules_timing.systems.event_window import EventWindow, ThenEventWindow
from tests.helpers import ScriptedPrompt, capture, make_game


def _challenge(game, card, log, then, *, condition=None):
    def effect(ctx):
        return [GameEvent("duel", lambda e: log.append("duel"), condition=condition)]
    return create_ability(game.world, card, "Challenge", effect=effect, then=then)


def test_then_ability_resolves_after_handlers_and_before_reactions():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    card = create_card(game.world, "Doji Challenger", first)
    log = []
    then = create_ability(game.world, card, "Then Draw", effect=lambda ctx: log.append("then"))
    challenge = _challenge(game, card, log, then)
    create_triggered_ability(game.world, card, "After Duel", AbilityTier.FORCED_REACTION, "duel",
                             effect=lambda ctx: log.append("reaction"))

    resolver = game.resolve_ability(game.create_ability_context(challenge))
    assert game.continue_processing() is True

    assert resolver.pass_priority
    assert log == ["duel", "then", "reaction"]


def test_then_ability_discarded_when_event_cancelled():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    closed = capture(game.event_bus, EVENT_WINDOW_CLOSED)
    card = create_card(game.world, "Doji Challenger", first)
    log = []
    then = create_ability(game.world, card, "Then Draw", effect=lambda ctx: log.append("then"))
    challenge = _challenge(game, card, log, then, condition=lambda e: False)

    game.resolve_ability(game.create_ability_context(challenge))
    game.continue_processing()

    assert log == []
    window = closed[0]["window"]
    assert window.then_ability_registrations == []


def test_then_ability_runs_for_the_original_triggering_player():
    game, first, second = make_game(prompt=ScriptedPrompt())
    crane_card = create_card(game.world, "Doji Challenger", first)
    lion_card = create_card(game.world, "Ikoma Prodigy", second)
    players = []
    then = create_ability(game.world, lion_card, "Borrowed", effect=lambda ctx: players.append(ctx.player))
    challenge = _challenge(game, crane_card, [], then)

    game.resolve_ability(game.create_ability_context(challenge))
    game.continue_processing()

    assert players == [first]


def test_then_window_skips_reactions_and_hands_events_to_parent():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    opened = capture(game.event_bus, EVENT_ABILITY_WINDOW_OPENED)
    card = create_card(game.world, "Doji Challenger", first)
    log = []
    gained = []

    def gain_honor(ctx):
        event = GameEvent("gain_honor", lambda e: log.append("honor"))
        gained.append(event)
        return [event]

    then = create_ability(game.world, card, "Then Honor", effect=gain_honor)
    challenge = _challenge(game, card, log, then)
    create_triggered_ability(game.world, card, "Honor Reaction", AbilityTier.FORCED_REACTION, "gain_honor",
                             effect=lambda ctx: log.append("honor reaction"))

    game.resolve_ability(game.create_ability_context(challenge))
    game.continue_processing()

    then_tiers = [p["tier"] for p in opened if isinstance(p["window"], ThenEventWindow)]
    assert then_tiers == [AbilityTier.WOULD_INTERRUPT, AbilityTier.FORCED_INTERRUPT, AbilityTier.INTERRUPT]
    assert log == ["duel", "honor", "honor reaction"]
    parent = gained[0].window
    assert type(parent) is EventWindow
    assert [event.name for event in parent.events] == ["duel", "gain_honor"]
    assert gained[0].resolved, "transferred events are not executed a second time"


def test_custom_condition_is_checked_against_registered_events():
    game, first, second = make_game(prompt=ScriptedPrompt())
    card = create_card(game.world, "Mirumoto Raitsugu", first)
    log = []
    source_ability = create_ability(game.world, card, "Duel")
    win = create_ability(game.world, card, "If You Win", effect=lambda ctx: log.append("win"))
    lose = create_ability(game.world, card, "If You Lose", effect=lambda ctx: log.append("lose"))
    duel = GameEvent("duel", lambda e: e.properties.update(winner=second))
    context = game.create_ability_context(source_ability, events=[duel])

    window = game.open_event_window([duel])
    window.add_then_ability(win, context, condition=lambda e: e.get("winner") == first, events=[duel])
    window.add_then_ability(lose, context, condition=lambda e: e.get("winner") == second, events=[duel])
    game.continue_processing()

    assert log == ["lose"]


def test_registration_outside_the_context_is_rejected():
    game, first, _ = make_game(prompt=ScriptedPrompt())
    card = create_card(game.world, "Mirumoto Raitsugu", first)
    ability = create_ability(game.world, card, "Duel")
    then = create_ability(game.world, card, "Then")
    foreign = GameEvent("duel")
    window = EventWindow(game, [foreign])

    with pytest.raises(ThenRegistrationError) as info:
        window.add_then_ability(then, game.create_ability_context(ability), events=[foreign])
    assert info.value.event is foreign
    assert window.then_ability_registrations == []


def test_then_window_without_current_window_is_a_plain_window():
    game, _, _ = make_game(prompt=ScriptedPrompt())
    window = game.open_then_event_window([GameEvent("draw")])
    assert type(window) is EventWindow


def test_then_window_without_parent_drops_events(caplog):
    game, _, _ = make_game(prompt=ScriptedPrompt())
    event = GameEvent("draw")
    window = ThenEventWindow(game, [event])
    game.queue_step(window)

    with caplog.at_level(logging.WARNING, logger="rules_timing.systems.event_window"):
        assert game.continue_processing() is True

    assert event.resolved
    assert window.closed
    assert "no open parent window" in caplog.text
