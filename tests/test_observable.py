import logging

from molshape.observable import Emitter, Property


def test_link_calls_immediately_and_in_order():
    flag = Property(False, name="flag")
    calls = []
    flag.link(lambda new, old: calls.append(("first", new, old)))
    flag.lazy_link(lambda new, old: calls.append(("second", new, old)))
    flag.value = True
    assert calls == [("first", False, None), ("first", True, False), ("second", True, False)]


def test_no_notification_without_change_and_reset():
    prop = Property(3)
    calls = []
    prop.lazy_link(lambda new, old: calls.append(new))
    prop.value = 3
    prop.value = 4
    prop.reset()
    assert calls == [4, 3]
    assert prop.value == prop.initial_value == 3


def test_unlink_stops_notifications():
    prop = Property("a")
    calls = []
    listener = prop.lazy_link(lambda new, old: calls.append(new))
    prop.unlink(listener)
    prop.value = "b"
    assert calls == []
    assert prop.listener_count == 0


def test_emitter_keeps_going_after_failing_listener(caplog):
    emitter = Emitter("bond_added")
    calls = []

    def broken(*args):
        raise RuntimeError("boom")

    emitter.add_listener(broken)
    emitter.add_listener(lambda value: calls.append(value))
    with caplog.at_level(logging.ERROR):
        emitter.emit(7)
    assert calls == [7]
    assert "bond_added" in caplog.text
