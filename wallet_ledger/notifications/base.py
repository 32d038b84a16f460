"""Notifier interface for OTP delivery."""

from abc import ABC, abstractmethod
from datetime import datetime

from wallet_ledger.models import BoundOperation, DeliveryChannel


class Notifier(ABC):
    """Best-effort delivery of OTP codes to the challenge subject.

    Implementations raise ``NotificationError`` on failure; the OTP store
    logs and swallows it.
    """

    channel: DeliveryChannel = DeliveryChannel.NONE

    @abstractmethod
    async def send_otp(
        self,
        subject_id: str,
        recipient: str | None,
        code: str,
        operation: BoundOperation,
        expires_at: datetime,
    ) -> None:
        """Deliver ``code`` to ``recipient``."""

    async def close(self) -> None:
        """Release any underlying resources."""


class NullNotifier(Notifier):
    """Drops every notification."""

    channel = DeliveryChannel.NONE

    async def send_otp(
        self,
        subject_id: str,
        recipient: str | None,
        code: str,
        operation: BoundOperation,
        expires_at: datetime,
    ) -> None:
        return None
