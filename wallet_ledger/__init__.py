"""wallet-ledger: atomic wallet ledger with OTP-gated transfers."""

from wallet_ledger.config import LedgerConfig
from wallet_ledger.ledger import Ledger, Posting
from wallet_ledger.service import WalletService
from wallet_ledger.transfers import TransferOrchestrator, TransferState

__version__ = "0.1.0"

__all__ = [
    "Ledger",
    "LedgerConfig",
    "Posting",
    "TransferOrchestrator",
    "TransferState",
    "WalletService",
    "__version__",
]
