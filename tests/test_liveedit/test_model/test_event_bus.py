"""Tests for the synchronous event bus."""

from liveedit.events import EventBus, HoverChanged, SelectionChanged


class TestEventBus:
    def test_typed_subscription(self):
        bus = EventBus()
        seen = []
        bus.subscribe(SelectionChanged, seen.append)
        bus.emit(SelectionChanged("#a"))
        bus.emit(HoverChanged("#b"))
        assert seen == [SelectionChanged("#a")]

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(SelectionChanged, seen.append)
        unsubscribe()
        unsubscribe()
        bus.emit(SelectionChanged("#a"))
        assert seen == []

    def test_catch_all_runs_first(self):
        bus = EventBus()
        order = []
        bus.subscribe(HoverChanged, lambda e: order.append("typed"))
        bus.on_all(lambda e: order.append("all"))
        bus.emit(HoverChanged(None))
        assert order == ["all", "typed"]
