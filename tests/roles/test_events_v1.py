import pytest

pytestmark = [pytest.mark.roles]

from roleguard.roles.events import ROLE_SWITCHED, ROLES_UPDATED, EventBus


def test_publish_reaches_subscribers_of_that_event_only():
    bus = EventBus()
    switched, updated = [], []
    bus.subscribe(ROLE_SWITCHED, switched.append)
    bus.subscribe(ROLES_UPDATED, updated.append)

    assert bus.publish(ROLE_SWITCHED, {"from": "viewer", "to": "publisher"}) == 1
    assert switched == [{"from": "viewer", "to": "publisher"}]
    assert updated == []


def test_unsubscribe_stops_delivery():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(ROLE_SWITCHED, seen.append)
    unsubscribe()
    unsubscribe()
    assert bus.publish(ROLE_SWITCHED, {"to": "admin"}) == 0
    assert seen == []


def test_failing_handler_does_not_block_others():
    bus = EventBus()
    seen = []

    def broken(payload):
        raise RuntimeError("handler bug")

    bus.subscribe(ROLE_SWITCHED, broken)
    bus.subscribe(ROLE_SWITCHED, seen.append)
    assert bus.publish(ROLE_SWITCHED, {"to": "viewer"}) == 1
    assert seen == [{"to": "viewer"}]


def test_handlers_get_their_own_copy():
    bus = EventBus()
    payload = {"to": "viewer"}
    bus.subscribe(ROLE_SWITCHED, lambda p: p.update(to="admin"))
    bus.publish(ROLE_SWITCHED, payload)
    assert payload == {"to": "viewer"}
