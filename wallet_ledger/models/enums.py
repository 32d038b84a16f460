"""Enumeration types for ledger entities."""

from enum import Enum


class TransactionKind(str, Enum):
    LOCAL_DEBIT = "LOCAL_DEBIT"
    LOCAL_CREDIT = "LOCAL_CREDIT"
    INTERNATIONAL_DEBIT = "INTERNATIONAL_DEBIT"
    DEPOSIT = "DEPOSIT"


class TransactionStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FAILED = "FAILED"


class TransferKind(str, Enum):
    LOCAL = "LOCAL"
    INTERNATIONAL = "INTERNATIONAL"


class OperationKind(str, Enum):
    """Operations an OTP challenge can authorize."""

    LOCAL_TRANSFER = "LOCAL_TRANSFER"
    INTERNATIONAL_TRANSFER = "INTERNATIONAL_TRANSFER"
    DEPOSIT = "DEPOSIT"

    @classmethod
    def for_transfer(cls, kind: TransferKind) -> "OperationKind":
        if kind == TransferKind.INTERNATIONAL:
            return cls.INTERNATIONAL_TRANSFER
        return cls.LOCAL_TRANSFER


class DeliveryChannel(str, Enum):
    EMAIL = "EMAIL"
    LOG = "LOG"
    NONE = "NONE"
