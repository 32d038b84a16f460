"""One-time passcode challenges."""

from wallet_ledger.otp.store import InMemoryOtpChallengeStore, OtpChallengeStore
from wallet_ledger.otp.sweeper import OtpSweeper

__all__ = ["InMemoryOtpChallengeStore", "OtpChallengeStore", "OtpSweeper"]
