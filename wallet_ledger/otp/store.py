"""OTP challenge storage with single-use redemption."""

from __future__ import annotations

import asyncio
import logging
import secrets
import uuid
from abc import ABC, abstractmethod
from datetime import timedelta

from wallet_ledger.clock import Clock, utcnow
from wallet_ledger.exceptions import (
    OtpCodeMismatchError,
    OtpExpiredError,
    OtpNotFoundError,
)
from wallet_ledger.models import BoundOperation, DeliveryChannel, IssuedOtp, OtpChallenge
from wallet_ledger.notifications import Notifier, NullNotifier

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=5)


class OtpChallengeStore(ABC):
    """Issues, stores and redeems one-time codes bound to an operation.

    Subclasses supply the storage: ``_put`` persists a new challenge,
    ``redeem`` must atomically check-and-delete per key, and ``sweep``
    drops expired entries (a backend with native TTL may make it a no-op).

    Parameters
    ----------
    notifier : Notifier | None
        Delivery channel for codes. Failures never affect issuance.
    clock : Clock | None
        Time source; defaults to UTC wall clock.
    code_length : int
        Number of digits in generated codes.
    ttl : timedelta
        Default lifetime of a challenge.
    delivery_timeout : float
        Seconds to wait for the notifier before giving up on delivery.
    """

    def __init__(
        self,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
        code_length: int = 4,
        ttl: timedelta = DEFAULT_TTL,
        delivery_timeout: float = 5.0,
    ) -> None:
        self.notifier = notifier or NullNotifier()
        self.clock = clock or utcnow
        self.code_length = code_length
        self.ttl = ttl
        self.delivery_timeout = delivery_timeout

    def generate_code(self) -> str:
        """Uniform random code with no leading zero (4 digits: 1000-9999)."""
        low = 10 ** (self.code_length - 1)
        return str(low + secrets.randbelow(9 * low))

    def generate_key(self) -> str:
        return uuid.uuid4().hex

    async def issue(
        self,
        subject_id: str,
        operation: BoundOperation,
        ttl: timedelta | None = None,
        recipient: str | None = None,
    ) -> IssuedOtp:
        """Create and store a challenge, then try to deliver its code.

        Parameters
        ----------
        subject_id : str
            Account the challenge is bound to.
        operation : BoundOperation
            Operation kind and amount the code authorizes.
        ttl : timedelta | None
            Lifetime override.
        recipient : str | None
            Delivery address passed to the notifier.

        Returns
        -------
        IssuedOtp
            Key, code, expiry and the channel the code actually went out on.
        """
        now = self.clock()
        challenge = OtpChallenge(
            key=self.generate_key(),
            code=self.generate_code(),
            subject_id=subject_id,
            operation=operation,
            expires_at=now + (ttl or self.ttl),
            created_at=now,
        )
        await self._put(challenge)
        logger.info(
            "Issued OTP %s for %s (%s), expires %s",
            challenge.key,
            subject_id,
            operation.kind.value,
            challenge.expires_at.isoformat(),
            extra={
                "extra": {
                    "otp_key": challenge.key,
                    "subject_id": subject_id,
                    "operation": operation.kind.value,
                }
            },
        )

        delivered_via = await self._deliver(challenge, recipient)
        return IssuedOtp(
            key=challenge.key,
            code=challenge.code,
            expires_at=challenge.expires_at,
            delivered_via=delivered_via,
        )

    async def _deliver(self, challenge: OtpChallenge, recipient: str | None) -> DeliveryChannel:
        """Send the code; any failure is logged and reported as NONE."""
        if self.notifier.channel == DeliveryChannel.NONE:
            return DeliveryChannel.NONE
        try:
            await asyncio.wait_for(
                self.notifier.send_otp(
                    challenge.subject_id,
                    recipient,
                    challenge.code,
                    challenge.operation,
                    challenge.expires_at,
                ),
                timeout=self.delivery_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "OTP %s delivery via %s timed out after %.1fs",
                challenge.key,
                self.notifier.channel.value,
                self.delivery_timeout,
            )
            return DeliveryChannel.NONE
        except Exception:
            # The code is authoritative, not the channel
            logger.warning(
                "OTP %s delivery via %s failed",
                challenge.key,
                self.notifier.channel.value,
                exc_info=True,
            )
            return DeliveryChannel.NONE
        return self.notifier.channel

    @abstractmethod
    async def _put(self, challenge: OtpChallenge) -> None:
        """Persist a newly issued challenge."""

    @abstractmethod
    async def redeem(self, key: str, code: str) -> OtpChallenge:
        """Consume the challenge for ``key`` if ``code`` matches.

        Raises
        ------
        OtpNotFoundError
            Key unknown or already consumed.
        OtpExpiredError
            Challenge expired; it is deleted.
        OtpCodeMismatchError
            Wrong code; the challenge stays redeemable until expiry.
        """

    @abstractmethod
    async def sweep(self) -> int:
        """Delete expired challenges and return how many were removed."""


class InMemoryOtpChallengeStore(OtpChallengeStore):
    """Process-local challenge store.

    A single ``asyncio.Lock`` makes check-and-delete atomic, so concurrent
    redemptions of one key yield at most one success.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._challenges: dict[str, OtpChallenge] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._challenges)

    def __contains__(self, key: str) -> bool:
        return key in self._challenges

    async def _put(self, challenge: OtpChallenge) -> None:
        async with self._lock:
            self._challenges[challenge.key] = challenge

    async def redeem(self, key: str, code: str) -> OtpChallenge:
        async with self._lock:
            challenge = self._challenges.get(key)
            if challenge is None:
                raise OtpNotFoundError("OTP not found or already used", key=key)

            if challenge.is_expired(self.clock()):
                del self._challenges[key]
                logger.info("OTP %s expired at %s", key, challenge.expires_at.isoformat())
                raise OtpExpiredError("OTP has expired", key=key)

            if not secrets.compare_digest(challenge.code.encode(), str(code).encode()):
                logger.info(
                    "OTP %s redeemed with wrong code",
                    key,
                    extra={"extra": {"otp_key": key, "error": OtpCodeMismatchError.code}},
                )
                raise OtpCodeMismatchError("Invalid OTP", key=key)

            del self._challenges[key]

        logger.info("OTP %s redeemed by %s", key, challenge.subject_id)
        return challenge

    async def sweep(self) -> int:
        removed = 0
        for key in list(self._challenges):
            # One expiry check per lock hold
            async with self._lock:
                challenge = self._challenges.get(key)
                if challenge is not None and challenge.expires_at < self.clock():
                    del self._challenges[key]
                    removed += 1
        if removed:
            logger.info("Swept %d expired OTP challenge(s), %d remaining", removed, len(self._challenges))
        return removed
