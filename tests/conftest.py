"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from wallet_ledger.models import Account


class FakeClock:
    """Manually advanced clock for expiry and timestamp tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at a fixed instant."""
    return FakeClock()


@pytest.fixture
def make_account(clock: FakeClock) -> Callable[..., Account]:
    """Factory for accounts with a given opening balance and no history."""

    def _make(account_id: str, account_number: str, balance: int = 0, **kwargs) -> Account:
        return Account(
            account_id=account_id,
            account_number=account_number,
            card_number=kwargs.pop("card_number", f"4000 0000 0000 {account_id[-4:]:0>4}"),
            holder_name=kwargs.pop("holder_name", f"Holder {account_id}"),
            balance=balance,
            created_at=clock(),
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_account_id() -> str:
    """Sample account ID."""
    return "acct-test-001"
