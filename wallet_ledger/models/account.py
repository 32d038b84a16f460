"""Account model for the ledger."""

from dataclasses import dataclass, field, replace
from datetime import datetime

from wallet_ledger.models.transaction import Transaction


@dataclass
class Account:
    """Wallet account.

    ``balance`` is in minor units and always equals the sum of the signed
    amounts in ``transactions`` plus the opening balance.
    """

    account_id: str
    account_number: str  # grouped digits, e.g. 4821-0937-1156
    card_number: str  # 16 digits in groups of four
    holder_name: str
    balance: int
    created_at: datetime
    email: str | None = None
    transactions: list[Transaction] = field(default_factory=list)
    updated_at: datetime | None = None

    def copy(self) -> "Account":
        """Working copy with its own transaction list."""
        return replace(self, transactions=list(self.transactions))
