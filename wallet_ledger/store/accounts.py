"""Account storage with atomic multi-account units of work."""

from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator

from wallet_ledger.exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    MissingFieldError,
)
from wallet_ledger.models import Account


@dataclass
class UnitOfWork:
    """Staged copies of the accounts locked for one atomic unit.

    Mutate the accounts returned by ``[]``; the store publishes them only
    if the unit exits without an exception.
    """

    accounts: dict[str, Account] = field(default_factory=dict)

    def __getitem__(self, account_id: str) -> Account:
        try:
            return self.accounts[account_id]
        except KeyError:
            raise AccountNotFoundError(
                f"Account {account_id} is not part of this unit", account_id=account_id
            ) from None


class AccountStore(ABC):
    """Storage contract the ledger relies on.

    ``atomic`` must give read-committed isolation and all-or-nothing
    publication across every account it names.
    """

    @abstractmethod
    async def add(self, account: Account) -> None:
        """Register a new account, enforcing unique numbers."""

    @abstractmethod
    async def get(self, account_id: str) -> Account:
        """Committed copy of an account."""

    @abstractmethod
    async def find_by_account_number(self, account_number: str) -> Account | None:
        """Committed copy of the account with ``account_number``, if any."""

    @abstractmethod
    def atomic(self, *account_ids: str) -> contextlib.AbstractAsyncContextManager[UnitOfWork]:
        """Lock ``account_ids`` and yield a unit of work over them."""

    @abstractmethod
    async def snapshot(self) -> list[Account]:
        """Committed copies of every account."""

    async def total_balance(self) -> int:
        """Sum of all committed balances."""
        return sum(account.balance for account in await self.snapshot())


@dataclass
class InMemoryAccountStore(AccountStore):
    """In-memory account store with per-account locking.

    Locks are taken in sorted id order so two transfers touching the same
    pair of accounts cannot deadlock.
    """

    accounts: dict[str, Account] = field(default_factory=dict)

    # Unique indexes
    _by_account_number: dict[str, str] = field(default_factory=dict)
    _by_card_number: dict[str, str] = field(default_factory=dict)

    _locks: dict[str, asyncio.Lock] = field(default_factory=dict)

    async def add(self, account: Account) -> None:
        if not account.account_number:
            raise MissingFieldError("Account number is required", field="account_number")
        if not account.card_number:
            raise MissingFieldError("Card number is required", field="card_number")
        if account.account_id in self.accounts:
            raise DuplicateAccountError("account_id", account.account_id)
        if account.account_number in self._by_account_number:
            raise DuplicateAccountError("account_number", account.account_number)
        if account.card_number in self._by_card_number:
            raise DuplicateAccountError("card_number", account.card_number)

        self.accounts[account.account_id] = account.copy()
        self._by_account_number[account.account_number] = account.account_id
        self._by_card_number[account.card_number] = account.account_id
        self._locks[account.account_id] = asyncio.Lock()

    async def get(self, account_id: str) -> Account:
        account = self.accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found", account_id=account_id)
        return account.copy()

    async def find_by_account_number(self, account_number: str) -> Account | None:
        account_id = self._by_account_number.get(account_number)
        if account_id is None:
            return None
        return self.accounts[account_id].copy()

    @contextlib.asynccontextmanager
    async def atomic(self, *account_ids: str) -> AsyncIterator[UnitOfWork]:
        ordered = sorted(set(account_ids))
        for account_id in ordered:
            if account_id not in self.accounts:
                raise AccountNotFoundError(f"Account {account_id} not found", account_id=account_id)

        async with contextlib.AsyncExitStack() as stack:
            for account_id in ordered:
                await stack.enter_async_context(self._locks[account_id])

            # Staged after locking so the unit sees the latest committed state
            unit = UnitOfWork({account_id: self.accounts[account_id].copy() for account_id in ordered})
            yield unit

            # No await between these assignments: readers see all or none
            for account_id, account in unit.accounts.items():
                self.accounts[account_id] = account

    async def snapshot(self) -> list[Account]:
        return [account.copy() for account in self.accounts.values()]
