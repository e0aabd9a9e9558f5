"""Session event publisher for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.events import SessionEvent

logger = logging.getLogger(__name__)

RECORDING_TOPIC = "recording.session"


class SessionEventPublisher:
    """Publishes recording session events using pubsub.pub."""

    def __init__(self, topic: str = RECORDING_TOPIC):
        """Initialize session event publisher.

        Args:
            topic: Pub/sub topic name for session events
        """
        self.topic = topic
        logger.debug(f"SessionEventPublisher initialized with topic: {topic}")

    def publish(self, event: SessionEvent) -> None:
        """Publish a session event to the pub/sub topic.

        Args:
            event: SessionEvent to publish
        """
        pub.sendMessage(self.topic, event=event)
