"""Log notifier for development and demos."""

import logging
from datetime import datetime

from wallet_ledger.models import BoundOperation, DeliveryChannel
from wallet_ledger.money import format_amount
from wallet_ledger.notifications.base import Notifier

logger = logging.getLogger(__name__)


class LogNotifier(Notifier):
    """Write OTP codes to the log instead of sending them.

    The only place a code is ever logged; never enable in production.
    """

    channel = DeliveryChannel.LOG

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level
        self.sent = 0

    async def send_otp(
        self,
        subject_id: str,
        recipient: str | None,
        code: str,
        operation: BoundOperation,
        expires_at: datetime,
    ) -> None:
        logger.log(
            self.level,
            "OTP for %s (%s): %s authorizes %s of %s, expires %s",
            subject_id,
            recipient or "no address",
            code,
            operation.kind.value,
            format_amount(operation.amount),
            expires_at.isoformat(),
        )
        self.sent += 1
