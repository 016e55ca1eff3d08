"""
Topic Registry - join state per topic on one connection.

State machine per topic:

    ABSENT --mark_joining--> JOINING --mark_joined--> JOINED
    JOINING / JOINED --remove / clear--> ABSENT

The registry is permissive: it does not reject a duplicate mark_joining.
Guarding against duplicate joins is the Router's job (it checks
is_joining / is_joined first). Absent topics have no entry at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from shared.config.logging import get_logger
from ws_channels.components.core.constants import TopicState

logger = get_logger(__name__)


@dataclass(slots=True)
class TopicEntry:
    """Registry record for one registered topic."""

    state: TopicState
    join_ref: str | None = None


class TopicRegistry:
    """
    Tracks which topics are joining or joined.

    Indices maintained:
    - _topics: topic -> TopicEntry (state + ref of the join frame)

    Thread Safety:
    - None required: all mutations happen within one event-loop turn.
    - Read-only views are immutable (MappingProxyType).
    """

    def __init__(self) -> None:
        self._topics: dict[str, TopicEntry] = {}

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def topics(self) -> MappingProxyType[str, TopicEntry]:
        """Registered topics (immutable view)."""
        return MappingProxyType(self._topics)

    def state(self, topic: str) -> TopicState:
        entry = self._topics.get(topic)
        return TopicState.ABSENT if entry is None else entry.state

    def is_joined(self, topic: str) -> bool:
        return self.state(topic) is TopicState.JOINED

    def is_joining(self, topic: str) -> bool:
        return self.state(topic) is TopicState.JOINING

    def is_registered(self, topic: str) -> bool:
        """True while JOINING or JOINED."""
        return topic in self._topics

    def join_ref(self, topic: str) -> str | None:
        """Ref of the join frame for a registered topic, if recorded."""
        entry = self._topics.get(topic)
        return None if entry is None else entry.join_ref

    def __len__(self) -> int:
        return len(self._topics)

    def __contains__(self, topic: object) -> bool:
        return topic in self._topics

    # =========================================================================
    # Transitions
    # =========================================================================

    def mark_joining(self, topic: str, join_ref: str | None = None) -> None:
        """
        ABSENT -> JOINING.

        Re-entry on a registered topic is allowed: the state returns to
        JOINING and the join ref is replaced.
        """
        entry = self._topics.get(topic)
        if entry is not None:
            logger.debug(
                "Topic re-entered JOINING",
                topic=topic,
                previous=entry.state.value,
            )
        self._topics[topic] = TopicEntry(state=TopicState.JOINING, join_ref=join_ref)

    def mark_joined(self, topic: str) -> bool:
        """
        JOINING -> JOINED.

        Any other starting state is a logic error; it is logged and ignored
        rather than raised so a stray acknowledgment cannot break dispatch.

        Returns:
            True if the transition happened.
        """
        entry = self._topics.get(topic)
        if entry is None or entry.state is not TopicState.JOINING:
            logger.warning(
                "Ignoring mark_joined for topic not in JOINING",
                topic=topic,
                state=self.state(topic).value,
            )
            return False

        entry.state = TopicState.JOINED
        return True

    def remove(self, topic: str) -> TopicState:
        """
        Any state -> ABSENT.

        Returns:
            The state the topic was in before removal.
        """
        entry = self._topics.pop(topic, None)
        return TopicState.ABSENT if entry is None else entry.state

    def clear(self) -> list[str]:
        """
        Remove every registered topic (used on disconnect).

        Returns:
            The topics that were registered.
        """
        topics = list(self._topics)
        for topic in topics:
            self.remove(topic)
        return topics

    # =========================================================================
    # Utility methods
    # =========================================================================

    def get_stats(self) -> dict:
        """Get registry statistics for monitoring."""
        states = [entry.state for entry in self._topics.values()]
        return {
            "registered": len(states),
            "joining": states.count(TopicState.JOINING),
            "joined": states.count(TopicState.JOINED),
        }
