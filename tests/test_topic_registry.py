"""
Tests for the topic registry and topic key helpers.
"""

import pytest

from ws_channels.components.core.constants import TopicState
from ws_channels.components.protocol.topics import (
    Namespace,
    chat_room_topic,
    delivery_topic,
    feed_user_topic,
    is_known_event,
    make_topic,
    parse_topic,
)
from ws_channels.components.registry.topics import TopicRegistry


class TestTopicRegistryTransitions:
    """ABSENT -> JOINING -> JOINED -> ABSENT."""

    def test_unknown_topic_is_absent(self):
        registry = TopicRegistry()

        assert registry.state("chat:room_1") is TopicState.ABSENT
        assert not registry.is_registered("chat:room_1")
        assert "chat:room_1" not in registry

    def test_full_lifecycle(self):
        registry = TopicRegistry()

        registry.mark_joining("chat:room_1", join_ref="1")
        assert registry.is_joining("chat:room_1")
        assert not registry.is_joined("chat:room_1")
        assert registry.join_ref("chat:room_1") == "1"

        assert registry.mark_joined("chat:room_1") is True
        assert registry.is_joined("chat:room_1")
        assert not registry.is_joining("chat:room_1")

        assert registry.remove("chat:room_1") is TopicState.JOINED
        assert registry.state("chat:room_1") is TopicState.ABSENT
        assert len(registry) == 0

    def test_mark_joined_requires_joining(self):
        registry = TopicRegistry()

        assert registry.mark_joined("feed:user_7") is False
        assert registry.state("feed:user_7") is TopicState.ABSENT

    def test_mark_joined_twice_is_ignored(self):
        registry = TopicRegistry()
        registry.mark_joining("feed:user_7")
        registry.mark_joined("feed:user_7")

        assert registry.mark_joined("feed:user_7") is False
        assert registry.is_joined("feed:user_7")

    def test_mark_joining_reentry_replaces_join_ref(self):
        registry = TopicRegistry()
        registry.mark_joining("chat:room_1", join_ref="1")
        registry.mark_joined("chat:room_1")

        registry.mark_joining("chat:room_1", join_ref="5")

        assert registry.is_joining("chat:room_1")
        assert registry.join_ref("chat:room_1") == "5"

    def test_remove_absent_topic_returns_absent(self):
        registry = TopicRegistry()

        assert registry.remove("chat:room_9") is TopicState.ABSENT

    def test_clear_returns_removed_topics(self):
        registry = TopicRegistry()
        registry.mark_joining("chat:room_1")
        registry.mark_joining("feed:user_7")
        registry.mark_joined("feed:user_7")

        removed = registry.clear()

        assert sorted(removed) == ["chat:room_1", "feed:user_7"]
        assert len(registry) == 0
        assert not registry.is_joined("feed:user_7")


class TestTopicRegistryViews:
    """Read-only views and stats."""

    def test_topics_view_is_read_only(self):
        registry = TopicRegistry()
        registry.mark_joining("chat:room_1")

        with pytest.raises(TypeError):
            registry.topics["chat:room_2"] = None

    def test_get_stats(self):
        registry = TopicRegistry()
        registry.mark_joining("chat:room_1")
        registry.mark_joining("feed:user_7")
        registry.mark_joined("feed:user_7")

        assert registry.get_stats() == {"registered": 2, "joining": 1, "joined": 1}


class TestTopicKeys:
    """Tests for topic composition helpers."""

    def test_domain_builders(self):
        assert chat_room_topic(42) == "chat:room_42"
        assert feed_user_topic("7") == "feed:user_7"
        assert delivery_topic(3) == "delivery:delivery_3"

    def test_make_topic_accepts_enum_or_string(self):
        assert make_topic(Namespace.FEED, "user_1") == "feed:user_1"
        assert make_topic("custom", 9) == "custom:9"

    @pytest.mark.parametrize("namespace,identifier", [("", "1"), ("chat", ""), ("a:b", "1")])
    def test_make_topic_rejects_invalid_parts(self, namespace, identifier):
        with pytest.raises(ValueError):
            make_topic(namespace, identifier)

    def test_parse_topic_splits_at_first_separator(self):
        assert parse_topic("chat:room_1") == ("chat", "room_1")
        assert parse_topic("custom:a:b") == ("custom", "a:b")

    @pytest.mark.parametrize("topic", ["chat", ":room_1", "chat:", ""])
    def test_parse_topic_rejects_malformed(self, topic):
        with pytest.raises(ValueError):
            parse_topic(topic)

    def test_is_known_event(self):
        assert is_known_event("chat:room_1", "message")
        assert is_known_event("feed:user_7", "like_update")
        assert is_known_event("delivery:delivery_3", "location_update")
        assert not is_known_event("chat:room_1", "like_item")
        assert not is_known_event("unknown:1", "message")
        assert not is_known_event("no-separator", "message")
