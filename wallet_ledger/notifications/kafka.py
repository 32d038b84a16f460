"""Kafka notifier: hands OTP codes to the mail service via a topic."""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from confluent_kafka import KafkaException, Producer

from wallet_ledger.config import KafkaConfig
from wallet_ledger.exceptions import NotificationError
from wallet_ledger.models import BoundOperation, DeliveryChannel
from wallet_ledger.models.event import Event
from wallet_ledger.notifications.base import Notifier
from wallet_ledger.serialization import to_dict

logger = logging.getLogger(__name__)

EVENT_SOURCE = "wallet-ledger"
OTP_EVENT_TYPE = "otp.issued"


@dataclass
class DeliveryStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0


class KafkaNotifier(Notifier):
    """Publish OTP delivery events for the email service.

    Each event is keyed by subject so one user's codes stay ordered on a
    partition. ``send_otp`` waits for the broker acknowledgement (bounded
    by ``flush_timeout``) in the default executor so the event loop is
    never blocked.
    """

    channel = DeliveryChannel.EMAIL

    def __init__(self, config: KafkaConfig | str, flush_timeout: float = 5.0) -> None:
        """Initialize Kafka notifier.

        Parameters
        ----------
        config : KafkaConfig | str
            Producer configuration or bootstrap servers string.
        flush_timeout : float
            Seconds to wait for delivery of one event.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.flush_timeout = flush_timeout
        self.producer = self._create_producer()
        self.stats = DeliveryStats()

    def _create_producer(self) -> Producer:
        """Create Kafka producer with configuration."""
        return Producer(self.config.to_dict())

    def build_event(
        self,
        subject_id: str,
        recipient: str | None,
        code: str,
        operation: BoundOperation,
        expires_at: datetime,
    ) -> Event:
        """Wrap an OTP in the standard event envelope."""
        return Event(
            event_id=uuid.uuid4().hex,
            event_type=OTP_EVENT_TYPE,
            event_time=datetime.now(timezone.utc),
            source=EVENT_SOURCE,
            subject=subject_id,
            data={
                "recipient": recipient,
                "code": code,
                "operation": to_dict(operation),
                "expires_at": expires_at,
            },
        )

    async def send_otp(
        self,
        subject_id: str,
        recipient: str | None,
        code: str,
        operation: BoundOperation,
        expires_at: datetime,
    ) -> None:
        if not recipient:
            raise NotificationError(f"No email address for {subject_id}")

        event = self.build_event(subject_id, recipient, code, operation, expires_at)
        value = json.dumps(to_dict(event), ensure_ascii=False).encode("utf-8")
        errors: list[Any] = []

        def on_delivery(err: Any, msg: Any) -> None:
            if err:
                self.stats.failed += 1
                errors.append(err)
                logger.error("OTP event delivery failed: %s", err)
            else:
                self.stats.delivered += 1
                logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

        try:
            self.producer.produce(
                topic=self.config.otp_topic,
                key=subject_id.encode("utf-8"),
                value=value,
                callback=on_delivery,
            )
        except (BufferError, KafkaException) as e:
            raise NotificationError(f"Could not enqueue OTP event: {e}") from e
        self.stats.sent += 1

        loop = asyncio.get_running_loop()
        remaining = await loop.run_in_executor(None, self.producer.flush, self.flush_timeout)

        if errors:
            raise NotificationError(f"OTP event rejected by broker: {errors[0]}")
        if remaining:
            raise NotificationError(f"OTP event not acknowledged within {self.flush_timeout}s")

    async def close(self) -> None:
        """Flush and close the producer."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.producer.flush, self.flush_timeout)
        logger.info(
            "Kafka notifier closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
