"""Account generator for demo and load-test data."""

from typing import Iterator

from wallet_ledger.clock import Clock, utcnow
from wallet_ledger.generators.base import BaseGenerator
from wallet_ledger.models import Account


def group_digits(digits: str, size: int = 4, sep: str = "-") -> str:
    """``"482109371156"`` -> ``"4821-0937-1156"``."""
    return sep.join(digits[i : i + size] for i in range(0, len(digits), size))


class AccountGenerator(BaseGenerator):
    """Generate wallet accounts with unique grouped-digit numbers.

    Account numbers are 12 digits as ``XXXX-XXXX-XXXX``; card numbers are
    16-digit Visa numbers (valid Luhn check digit) in groups of four.
    Uniqueness holds across every account one generator produces.
    """

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "en_US",
        clock: Clock | None = None,
    ) -> None:
        super().__init__(seed, locale)
        self.clock = clock or utcnow
        self._account_numbers: set[str] = set()
        self._card_numbers: set[str] = set()

    def _unique(self, make, seen: set[str]) -> str:
        while True:
            value = make()
            if value not in seen:
                seen.add(value)
                return value

    def account_number(self) -> str:
        return self._unique(
            lambda: group_digits(self.fake.numerify("%###########")),
            self._account_numbers,
        )

    def card_number(self) -> str:
        return self._unique(
            lambda: group_digits(self.fake.credit_card_number(card_type="visa16"), sep=" "),
            self._card_numbers,
        )

    def generate(self, balance: int = 0) -> Account:
        """Generate a single account.

        Parameters
        ----------
        balance : int
            Opening balance in minor units. Callers that need the balance
            reflected in history should open at zero and deposit instead.

        Returns
        -------
        Account
            Generated account.
        """
        name = self.fake.name()
        return Account(
            account_id=self.fake.uuid4(),
            account_number=self.account_number(),
            card_number=self.card_number(),
            holder_name=name,
            email=self.fake.email(),
            balance=balance,
            created_at=self.clock(),
        )

    def generate_batch(self, count: int, balance: int = 0) -> Iterator[Account]:
        """Generate ``count`` accounts."""
        for _ in range(count):
            yield self.generate(balance)
