"""Account storage backends."""

from wallet_ledger.store.accounts import AccountStore, InMemoryAccountStore, UnitOfWork

__all__ = ["AccountStore", "InMemoryAccountStore", "UnitOfWork"]
