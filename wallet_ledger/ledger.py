"""Authoritative balances and transaction history.

Every mutation runs inside one ``AccountStore.atomic`` unit: the balance
change and the history entry are published together or not at all, and
funds are checked against the balance read under the account lock.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from wallet_ledger.clock import Clock, utcnow
from wallet_ledger.exceptions import (
    InsufficientFundsError,
    MissingFieldError,
    MissingSwiftCodeError,
    RecipientNotFoundError,
    SelfTransferError,
)
from wallet_ledger.models import (
    INTERNATIONAL_RECIPIENT,
    Account,
    Transaction,
    TransactionKind,
    TransactionStatus,
)
from wallet_ledger.money import format_amount, require_positive
from wallet_ledger.store import AccountStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Posting:
    """A transaction together with the account balance right after it."""

    transaction: Transaction
    balance: int


class Ledger:
    """Atomic credit, debit and transfer operations over an account store.

    Parameters
    ----------
    store : AccountStore
        Backing storage providing atomic units of work.
    clock : Clock | None
        Time source for transaction timestamps.
    settlement_days : int
        Days added to now for the settlement estimate of international
        transfers.
    """

    def __init__(
        self,
        store: AccountStore,
        clock: Clock | None = None,
        settlement_days: int = 2,
    ) -> None:
        self.store = store
        self.clock = clock or utcnow
        self.settlement_days = settlement_days

    # Posting primitives

    def _new_transaction(
        self,
        account_id: str,
        kind: TransactionKind,
        amount: int,
        created_at: datetime,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        **fields,
    ) -> Transaction:
        return Transaction(
            transaction_id=uuid.uuid4().hex,
            account_id=account_id,
            kind=kind,
            amount=amount,
            status=status,
            created_at=created_at,
            **fields,
        )

    def _post(self, account: Account, transaction: Transaction) -> Posting:
        """Apply ``transaction`` to a staged account."""
        account.balance += transaction.amount
        account.transactions.append(transaction)
        account.updated_at = transaction.created_at
        return Posting(transaction=transaction, balance=account.balance)

    @staticmethod
    def _ensure_funds(account: Account, amount: int) -> None:
        if account.balance < amount:
            raise InsufficientFundsError(current_balance=account.balance, requested=amount)

    # Operations

    async def credit(
        self,
        account_id: str,
        amount: int,
        notes: str = "Funds added to account",
    ) -> Posting:
        """Deposit ``amount`` minor units into an account."""
        require_positive(amount)
        async with self.store.atomic(account_id) as unit:
            account = unit[account_id]
            posting = self._post(
                account,
                self._new_transaction(
                    account_id, TransactionKind.DEPOSIT, amount, self.clock(), notes=notes
                ),
            )
        logger.info(
            "Credited %s to %s, balance %s",
            format_amount(amount),
            account.account_number,
            format_amount(posting.balance),
        )
        return posting

    async def debit(
        self,
        account_id: str,
        amount: int,
        notes: str = "Withdrawal",
    ) -> Posting:
        """Withdraw ``amount`` minor units.

        Raises
        ------
        InvalidAmountError
            ``amount`` is not positive.
        InsufficientFundsError
            The locked balance is lower than ``amount``.
        """
        require_positive(amount)
        async with self.store.atomic(account_id) as unit:
            account = unit[account_id]
            self._ensure_funds(account, amount)
            posting = self._post(
                account,
                self._new_transaction(
                    account_id, TransactionKind.LOCAL_DEBIT, -amount, self.clock(), notes=notes
                ),
            )
        logger.info(
            "Debited %s from %s, balance %s",
            format_amount(amount),
            account.account_number,
            format_amount(posting.balance),
        )
        return posting

    async def transfer_local(
        self,
        from_account_id: str,
        to_account_number: str,
        amount: int,
        recipient_name: str,
    ) -> tuple[Posting, Posting]:
        """Move money between two local accounts.

        Returns
        -------
        tuple[Posting, Posting]
            The sender's debit and the recipient's credit. Both share one
            timestamp and carry opposite amounts.
        """
        require_positive(amount)
        recipient = await self.store.find_by_account_number(to_account_number)
        if recipient is None:
            raise RecipientNotFoundError(
                "Recipient account not found", account_number=to_account_number
            )
        if recipient.account_id == from_account_id:
            raise SelfTransferError("Cannot transfer to your own account", account_id=from_account_id)

        async with self.store.atomic(from_account_id, recipient.account_id) as unit:
            sender = unit[from_account_id]
            receiver = unit[recipient.account_id]
            self._ensure_funds(sender, amount)

            now = self.clock()
            debit = self._post(
                sender,
                self._new_transaction(
                    sender.account_id,
                    TransactionKind.LOCAL_DEBIT,
                    -amount,
                    now,
                    counterparty_account_number=receiver.account_number,
                    counterparty_name=recipient_name,
                ),
            )
            credit = self._post(
                receiver,
                self._new_transaction(
                    receiver.account_id,
                    TransactionKind.LOCAL_CREDIT,
                    amount,
                    now,
                    counterparty_account_number=sender.account_number,
                    counterparty_name=sender.holder_name,
                ),
            )

        logger.info(
            "Local transfer %s -> %s: %s",
            sender.account_number,
            receiver.account_number,
            format_amount(amount),
        )
        return debit, credit

    async def transfer_international(
        self,
        from_account_id: str,
        amount: int,
        recipient_name: str,
        swift_code: str | None,
        iban_number: str | None = None,
        recipient_reference: str | None = None,
    ) -> Posting:
        """Debit the sender for a cross-border transfer.

        No local credit is made; the transaction stays ``PENDING`` with a
        settlement estimate ``settlement_days`` ahead.
        """
        require_positive(amount)
        if not swift_code or not swift_code.strip():
            raise MissingSwiftCodeError()
        if not recipient_name:
            raise MissingFieldError("Recipient name is required", field="recipient_name")

        async with self.store.atomic(from_account_id) as unit:
            sender = unit[from_account_id]
            self._ensure_funds(sender, amount)

            now = self.clock()
            posting = self._post(
                sender,
                self._new_transaction(
                    sender.account_id,
                    TransactionKind.INTERNATIONAL_DEBIT,
                    -amount,
                    now,
                    status=TransactionStatus.PENDING,
                    counterparty_account_number=(
                        recipient_reference or iban_number or INTERNATIONAL_RECIPIENT
                    ),
                    counterparty_name=recipient_name,
                    swift_code=swift_code.strip().upper(),
                    iban_number=iban_number or None,
                    settlement_estimate=now + timedelta(days=self.settlement_days),
                    notes="International transfer processing",
                ),
            )

        logger.info(
            "International transfer initiated from %s: %s via %s, settles ~%s",
            sender.account_number,
            format_amount(amount),
            posting.transaction.swift_code,
            posting.transaction.settlement_estimate.date().isoformat(),
        )
        return posting

    # Reads

    async def get_account(self, account_id: str) -> Account:
        """Committed view of an account."""
        return await self.store.get(account_id)

    async def history(self, account_id: str) -> list[Transaction]:
        """Transactions newest first; ties keep the later-appended entry first."""
        account = await self.store.get(account_id)
        ordered = sorted(
            enumerate(account.transactions),
            key=lambda item: (item[1].created_at, item[0]),
            reverse=True,
        )
        return [transaction for _, transaction in ordered]
