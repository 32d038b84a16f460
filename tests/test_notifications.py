"""Tests for OTP notifiers."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from wallet_ledger.config import KafkaConfig, LedgerConfig, NotificationConfig
from wallet_ledger.exceptions import NotificationError
from wallet_ledger.models import BoundOperation, DeliveryChannel, OperationKind
from wallet_ledger.notifications import LogNotifier, NullNotifier, build_notifier

OPERATION = BoundOperation(OperationKind.LOCAL_TRANSFER, 30_000)
EXPIRES = datetime(2026, 3, 1, 12, 5, tzinfo=timezone.utc)


def send(notifier, recipient="ana@example.com", code="4821"):
    return asyncio.run(notifier.send_otp("acct-1", recipient, code, OPERATION, EXPIRES))


class TestLogNotifier:
    """Tests for the log notifier."""

    def test_logs_code(self, caplog) -> None:
        notifier = LogNotifier()

        with caplog.at_level(logging.INFO, logger="wallet_ledger.notifications.console"):
            send(notifier)

        assert notifier.sent == 1
        assert notifier.channel == DeliveryChannel.LOG
        assert "4821" in caplog.text
        assert "300.00" in caplog.text

    def test_no_address(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="wallet_ledger.notifications.console"):
            send(LogNotifier(), recipient=None)

        assert "no address" in caplog.text


class TestNullNotifier:
    """Tests for the null notifier."""

    def test_drops(self) -> None:
        notifier = NullNotifier()

        assert send(notifier) is None
        assert notifier.channel == DeliveryChannel.NONE
        asyncio.run(notifier.close())


class TestKafkaNotifier:
    """Tests for the Kafka notifier."""

    @patch("wallet_ledger.notifications.kafka.Producer")
    def test_init_with_string(self, mock_producer: MagicMock) -> None:
        from wallet_ledger.notifications.kafka import KafkaNotifier

        notifier = KafkaNotifier("localhost:9092")

        assert notifier.config.bootstrap_servers == "localhost:9092"
        assert notifier.channel == DeliveryChannel.EMAIL
        mock_producer.assert_called_once_with(KafkaConfig(bootstrap_servers="localhost:9092").to_dict())

    @patch("wallet_ledger.notifications.kafka.Producer")
    def test_send_publishes_event(self, mock_producer: MagicMock) -> None:
        from wallet_ledger.notifications.kafka import KafkaNotifier

        producer = mock_producer.return_value
        producer.flush.return_value = 0

        def produce(topic, key, value, callback):
            callback(None, MagicMock())

        producer.produce.side_effect = produce
        notifier = KafkaNotifier(KafkaConfig(bootstrap_servers="kafka:9092", otp_topic="otp"))

        send(notifier)

        kwargs = producer.produce.call_args.kwargs
        assert kwargs["topic"] == "otp"
        assert kwargs["key"] == b"acct-1"
        event = json.loads(kwargs["value"])
        assert event["event_type"] == "otp.issued"
        assert event["subject"] == "acct-1"
        assert event["data"]["code"] == "4821"
        assert event["data"]["recipient"] == "ana@example.com"
        assert event["data"]["operation"] == {"kind": "LOCAL_TRANSFER", "amount": 30_000}
        assert notifier.stats.sent == 1
        assert notifier.stats.delivered == 1
        assert notifier.stats.success_rate == 1.0

    @patch("wallet_ledger.notifications.kafka.Producer")
    def test_broker_error(self, mock_producer: MagicMock) -> None:
        from wallet_ledger.notifications.kafka import KafkaNotifier

        producer = mock_producer.return_value
        producer.flush.return_value = 0
        producer.produce.side_effect = lambda topic, key, value, callback: callback("broker down", None)
        notifier = KafkaNotifier("localhost:9092")

        with pytest.raises(NotificationError, match="broker down"):
            send(notifier)

        assert notifier.stats.failed == 1

    @patch("wallet_ledger.notifications.kafka.Producer")
    def test_unacknowledged(self, mock_producer: MagicMock) -> None:
        from wallet_ledger.notifications.kafka import KafkaNotifier

        mock_producer.return_value.flush.return_value = 1
        notifier = KafkaNotifier("localhost:9092")

        with pytest.raises(NotificationError, match="not acknowledged"):
            send(notifier)

    @patch("wallet_ledger.notifications.kafka.Producer")
    def test_queue_full(self, mock_producer: MagicMock) -> None:
        from wallet_ledger.notifications.kafka import KafkaNotifier

        mock_producer.return_value.produce.side_effect = BufferError("queue full")
        notifier = KafkaNotifier("localhost:9092")

        with pytest.raises(NotificationError, match="Could not enqueue"):
            send(notifier)

    @patch("wallet_ledger.notifications.kafka.Producer")
    def test_requires_recipient(self, mock_producer: MagicMock) -> None:
        from wallet_ledger.notifications.kafka import KafkaNotifier

        notifier = KafkaNotifier("localhost:9092")

        with pytest.raises(NotificationError):
            send(notifier, recipient=None)

        mock_producer.return_value.produce.assert_not_called()

    @patch("wallet_ledger.notifications.kafka.Producer")
    def test_close_flushes(self, mock_producer: MagicMock) -> None:
        from wallet_ledger.notifications.kafka import KafkaNotifier

        notifier = KafkaNotifier("localhost:9092", flush_timeout=2.0)

        asyncio.run(notifier.close())

        mock_producer.return_value.flush.assert_called_once_with(2.0)


class TestBuildNotifier:
    """Tests for notifier selection."""

    def test_log(self) -> None:
        config = LedgerConfig(notification=NotificationConfig(channel="log"))

        assert isinstance(build_notifier(config), LogNotifier)

    def test_none(self) -> None:
        config = LedgerConfig(notification=NotificationConfig(channel="none"))

        assert isinstance(build_notifier(config), NullNotifier)

    @patch("wallet_ledger.notifications.kafka.Producer")
    def test_kafka(self, mock_producer: MagicMock) -> None:
        from wallet_ledger.notifications.kafka import KafkaNotifier

        config = LedgerConfig(notification=NotificationConfig(channel="kafka"))

        notifier = build_notifier(config)

        assert isinstance(notifier, KafkaNotifier)
        assert notifier.flush_timeout == config.otp.delivery_timeout_seconds
