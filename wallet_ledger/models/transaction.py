"""Transaction model for the ledger."""

from dataclasses import dataclass
from datetime import datetime

from wallet_ledger.models.enums import TransactionKind, TransactionStatus


@dataclass(frozen=True)
class Transaction:
    """One ledger-affecting event, attached to exactly one account.

    ``amount`` is signed minor units: negative for debits.
    """

    transaction_id: str
    account_id: str
    kind: TransactionKind
    amount: int
    status: TransactionStatus
    created_at: datetime

    # Transfer counterparty (absent for deposits)
    counterparty_account_number: str | None = None
    counterparty_name: str | None = None

    # International only
    swift_code: str | None = None
    iban_number: str | None = None
    settlement_estimate: datetime | None = None

    notes: str = ""

    @property
    def is_debit(self) -> bool:
        return self.amount < 0
