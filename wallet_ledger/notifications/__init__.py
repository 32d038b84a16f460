"""OTP delivery channels."""

from wallet_ledger.config import LedgerConfig
from wallet_ledger.notifications.base import Notifier, NullNotifier
from wallet_ledger.notifications.console import LogNotifier


def build_notifier(config: LedgerConfig) -> Notifier:
    """Select the notifier named by ``config.notification.channel``."""
    channel = config.notification.channel
    if channel == "kafka":
        from wallet_ledger.notifications.kafka import KafkaNotifier

        return KafkaNotifier(config.kafka, flush_timeout=config.otp.delivery_timeout_seconds)
    if channel == "log":
        return LogNotifier()
    return NullNotifier()


__all__ = ["LogNotifier", "Notifier", "NullNotifier", "build_notifier"]
