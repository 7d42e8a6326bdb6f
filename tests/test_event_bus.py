from rules_timing.events.bus import EventBus


def test_event_bus_emit_subscribe():
    bus = EventBus()
    received = {}

    def handler(sender, **kwargs):
        received.update(kwargs)

    bus.subscribe("honor_gained", handler)
    bus.emit("honor_gained", amount=2, player=1)

    assert received["amount"] == 2
    assert received["player"] == 1


def test_event_bus_unsubscribe_and_unknown_names():
    bus = EventBus()
    calls = []

    def handler(sender, **kwargs):
        calls.append(kwargs)

    bus.emit("nobody_listens", value=1)
    bus.subscribe("tick", handler)
    bus.emit("tick", n=1)
    bus.unsubscribe("tick", handler)
    bus.emit("tick", n=2)
    bus.unsubscribe("never_subscribed", handler)

    assert calls == [{"n": 1}]
