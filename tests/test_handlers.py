"""
Tests for the (topic, event) handler registry.
"""

import pytest

from ws_channels.components.events.handlers import HandlerRegistry


def _noop(payload):
    return None


class TestHandlerRegistry:
    """Exact composite-key matching in registration order."""

    def test_handlers_returned_in_registration_order(self):
        registry = HandlerRegistry()
        first = lambda payload: "first"  # noqa: E731
        second = lambda payload: "second"  # noqa: E731

        registry.add("chat:room_1", "message", first)
        registry.add("chat:room_1", "message", second)

        assert registry.handlers_for("chat:room_1", "message") == [first, second]

    def test_matching_is_exact_on_both_parts(self):
        registry = HandlerRegistry()
        registry.add("chat:room_1", "message", _noop)

        assert registry.handlers_for("chat:room_2", "message") == []
        assert registry.handlers_for("chat:room_1", "typing") == []
        assert registry.handlers_for("chat:*", "message") == []

    def test_same_callable_registered_twice_is_kept_twice(self):
        registry = HandlerRegistry()
        registry.add("feed:user_7", "new_item", _noop)
        registry.add("feed:user_7", "new_item", _noop)

        assert registry.handlers_for("feed:user_7", "new_item") == [_noop, _noop]

    def test_remove_one_registration(self):
        registry = HandlerRegistry()
        first = registry.add("feed:user_7", "new_item", _noop)
        registry.add("feed:user_7", "new_item", _noop)

        assert registry.remove(first) is True
        assert registry.remove(first) is False
        assert registry.count("feed:user_7", "new_item") == 1

    def test_removing_last_handler_drops_the_key(self):
        registry = HandlerRegistry()
        subscription = registry.add("chat:room_1", "message", _noop)

        registry.remove(subscription)

        assert registry.get_stats() == {"keys": 0, "handlers": 0}

    def test_handlers_for_returns_a_copy(self):
        registry = HandlerRegistry()
        registry.add("chat:room_1", "message", _noop)

        handlers = registry.handlers_for("chat:room_1", "message")
        handlers.clear()

        assert registry.count("chat:room_1") == 1

    def test_subscription_ids_are_unique(self):
        registry = HandlerRegistry()
        a = registry.add("chat:room_1", "message", _noop)
        b = registry.add("chat:room_1", "message", _noop)

        assert a != b
        assert a.key == b.key == ("chat:room_1", "message")

    def test_non_callable_handler_rejected(self):
        registry = HandlerRegistry()

        with pytest.raises(TypeError):
            registry.add("chat:room_1", "message", "not-callable")
