"""Demo data generators."""

from wallet_ledger.generators.account import AccountGenerator, group_digits

__all__ = ["AccountGenerator", "group_digits"]
