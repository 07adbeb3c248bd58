"""Tests for the structure event bus."""

from uuid import UUID

import pytest

from metis.structure import StructureEvent, StructureEventBus, StructureEventKind


class TestStructureEvent:
    """Tests for the event envelope."""

    def test_to_dict(self) -> None:
        event = StructureEvent(
            kind=StructureEventKind.NEW_PROTOTYPE,
            key="A",
            payload={"attached": True},
        )
        data = event.to_dict()

        assert data["kind"] == "new-prototype"
        assert data["key"] == "A"
        assert data["payload"] == {"attached": True}
        assert UUID(data["event_id"]) == event.event_id
        assert data["timestamp"].endswith("+00:00")

    def test_event_ids_are_unique(self) -> None:
        first = StructureEvent(kind=StructureEventKind.STRUCTURE_CHANGE)
        second = StructureEvent(kind=StructureEventKind.STRUCTURE_CHANGE)
        assert first.event_id != second.event_id


class TestStructureEventBus:
    """Tests for subscription and delivery."""

    def test_delivers_to_matching_kind(self) -> None:
        bus = StructureEventBus()
        received = []
        bus.subscribe(StructureEventKind.SET_BUTTONS, received.append)

        bus.emit(StructureEventKind.SET_BUTTONS, "A", button_count=1)
        bus.emit(StructureEventKind.STRUCTURE_CHANGE, "key")

        assert [e.kind for e in received] == [StructureEventKind.SET_BUTTONS]

    def test_activity_receives_everything(self) -> None:
        bus = StructureEventBus()
        received = []
        bus.subscribe("activity", received.append)

        bus.emit(StructureEventKind.NEW_PROTOTYPE, "A")
        bus.emit(StructureEventKind.SELECTION_CHANGE)

        assert [e.kind for e in received] == [
            StructureEventKind.NEW_PROTOTYPE,
            StructureEventKind.SELECTION_CHANGE,
        ]

    def test_delivery_in_subscription_order(self) -> None:
        bus = StructureEventBus()
        order = []
        bus.subscribe(StructureEventKind.STRUCTURE_CHANGE, lambda e: order.append("first"))
        bus.subscribe(StructureEventKind.ACTIVITY, lambda e: order.append("second"))

        bus.emit(StructureEventKind.STRUCTURE_CHANGE)

        assert order == ["first", "second"]

    def test_activity_cannot_be_published(self) -> None:
        bus = StructureEventBus()
        with pytest.raises(ValueError):
            bus.emit(StructureEventKind.ACTIVITY)

    def test_unknown_kind_rejected(self) -> None:
        bus = StructureEventBus()
        with pytest.raises(ValueError):
            bus.subscribe("redraw", lambda e: None)

    def test_unsubscribe(self) -> None:
        bus = StructureEventBus()
        received = []
        handler = received.append
        bus.subscribe(StructureEventKind.NEW_PROTOTYPE, handler)
        bus.subscribe(StructureEventKind.DELETE_PROTOTYPE, handler)

        assert bus.unsubscribe(handler) == 2
        bus.emit(StructureEventKind.NEW_PROTOTYPE)

        assert received == []
        assert bus.subscriptions == []

    def test_handler_may_unsubscribe_during_delivery(self) -> None:
        bus = StructureEventBus()
        received = []

        def once(event: StructureEvent) -> None:
            received.append(event)
            bus.unsubscribe(once)

        bus.subscribe(StructureEventKind.STRUCTURE_CHANGE, once)
        bus.emit(StructureEventKind.STRUCTURE_CHANGE)
        bus.emit(StructureEventKind.STRUCTURE_CHANGE)

        assert len(received) == 1

    def test_handler_errors_propagate(self) -> None:
        bus = StructureEventBus()

        def broken(event: StructureEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe(StructureEventKind.STRUCTURE_CHANGE, broken)

        with pytest.raises(RuntimeError, match="boom"):
            bus.emit(StructureEventKind.STRUCTURE_CHANGE)

    def test_clear(self) -> None:
        bus = StructureEventBus()
        bus.subscribe(StructureEventKind.STRUCTURE_CHANGE, lambda e: None)
        bus.clear()
        assert bus.subscriptions == []


class TestHistory:
    """Tests for event replay."""

    def test_history_filters(self) -> None:
        bus = StructureEventBus()
        bus.emit(StructureEventKind.NEW_PROTOTYPE, "A")
        bus.emit(StructureEventKind.NEW_PROTOTYPE, "B")
        bus.emit(StructureEventKind.DELETE_PROTOTYPE, "A")

        assert [e.key for e in bus.history(StructureEventKind.NEW_PROTOTYPE)] == ["A", "B"]
        assert [e.kind for e in bus.history(key="A")] == [
            StructureEventKind.NEW_PROTOTYPE,
            StructureEventKind.DELETE_PROTOTYPE,
        ]

    def test_payload_may_reuse_envelope_names(self) -> None:
        bus = StructureEventBus()

        event = bus.emit(StructureEventKind.SET_BUTTONS, "A", kind="flag", key="k")

        assert event.kind == StructureEventKind.SET_BUTTONS
        assert event.key == "A"
        assert event.payload == {"kind": "flag", "key": "k"}

    def test_history_is_bounded(self) -> None:
        bus = StructureEventBus(history_size=2)
        for key in "ABC":
            bus.emit(StructureEventKind.NEW_PROTOTYPE, key)

        assert [e.key for e in bus.history()] == ["B", "C"]

    def test_engine_events_recorded(self, make_tree, bus) -> None:
        mission = make_tree({"A": {}})
        mission.begin_creation(mission.get_prototype("A"))

        changes = list(bus.history(StructureEventKind.TRANSFORMATION_CHANGE))
        assert changes[-1].payload == {
            "variant": "creation",
            "destination": "A",
            "relation": None,
        }
