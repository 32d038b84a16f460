"""One-time passcode challenge models."""

from dataclasses import dataclass
from datetime import datetime

from wallet_ledger.models.enums import DeliveryChannel, OperationKind


@dataclass(frozen=True)
class BoundOperation:
    """The operation a challenge authorizes."""

    kind: OperationKind
    amount: int

    def matches(self, other: "BoundOperation") -> bool:
        return self.kind == other.kind and self.amount == other.amount


@dataclass(frozen=True)
class OtpChallenge:
    """Stored challenge, consumed on first successful redemption."""

    key: str
    code: str
    subject_id: str
    operation: BoundOperation
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class IssuedOtp:
    """What the issuer hands back to the caller."""

    key: str
    code: str
    expires_at: datetime
    delivered_via: DeliveryChannel
