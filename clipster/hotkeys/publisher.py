"""Hotkey publisher module for pub/sub event publishing."""

import logging
from pubsub import pub

from ..models.events import HotkeyEvent

logger = logging.getLogger(__name__)

HOTKEY_TOPIC = "hotkey.events"


class HotkeyPublisher:
    """Publishes hotkey events using pubsub.pub."""

    def __init__(self, topic: str = HOTKEY_TOPIC):
        """Initialize hotkey publisher.

        Args:
            topic: Pub/sub topic name for hotkey events
        """
        self.topic = topic
        logger.info(f"HotkeyPublisher initialized with topic: {topic}")

    def publish_hotkey_event(self, event: HotkeyEvent) -> None:
        """Publish a hotkey event to the pub/sub topic.

        Args:
            event: HotkeyEvent to publish
        """
        logger.debug(f"Publishing {event.state.value} for {event.binding_id}")
        pub.sendMessage(self.topic, event=event)
