"""Ledger domain models."""

from wallet_ledger.models.account import Account
from wallet_ledger.models.enums import (
    DeliveryChannel,
    OperationKind,
    TransactionKind,
    TransactionStatus,
    TransferKind,
)
from wallet_ledger.models.event import Event
from wallet_ledger.models.otp import BoundOperation, IssuedOtp, OtpChallenge
from wallet_ledger.models.transaction import Transaction
from wallet_ledger.models.transfer import (
    INTERNATIONAL_RECIPIENT,
    TransferRequest,
    TransferResult,
)

__all__ = [
    "INTERNATIONAL_RECIPIENT",
    "Account",
    "BoundOperation",
    "DeliveryChannel",
    "Event",
    "IssuedOtp",
    "OperationKind",
    "OtpChallenge",
    "Transaction",
    "TransactionKind",
    "TransactionStatus",
    "TransferKind",
    "TransferRequest",
    "TransferResult",
]
