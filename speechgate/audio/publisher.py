"""Session event publisher for pub/sub lifecycle notifications."""

import logging
from pubsub import pub

from ..errors import CaptureFault
from ..models.events import StateChangeEvent
from ..models.validation import ValidationOutcome

logger = logging.getLogger(__name__)


class SessionEventPublisher:
    """Publishes recording session events using pubsub.pub."""

    def __init__(self, topic_root: str = "recording"):
        """Initialize session event publisher.

        Args:
            topic_root: Root topic; events go to <root>.state, <root>.level,
                        <root>.completed and <root>.fault
        """
        self.topic_root = topic_root
        self.state_topic = f"{topic_root}.state"
        self.level_topic = f"{topic_root}.level"
        self.completed_topic = f"{topic_root}.completed"
        self.fault_topic = f"{topic_root}.fault"
        logger.info(f"SessionEventPublisher initialized with topic root: {topic_root}")

    def publish_state_change(self, event: StateChangeEvent) -> None:
        pub.sendMessage(self.state_topic, event=event)
        logger.debug(f"Published state change: {event.old_state.value} -> {event.new_state.value}")

    def publish_level(self, amplitude: float) -> None:
        pub.sendMessage(self.level_topic, amplitude=amplitude)

    def publish_completed(self, outcome: ValidationOutcome) -> None:
        pub.sendMessage(self.completed_topic, outcome=outcome)

    def publish_fault(self, fault: CaptureFault) -> None:
        pub.sendMessage(self.fault_topic, fault=fault)
