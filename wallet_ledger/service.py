"""Wallet operation surface.

Transport adapters (HTTP handlers, CLIs) call these methods and get plain
JSON-ready dicts back; every failure is a typed ``LedgerError`` whose
``to_dict()`` is the error body. Amounts are integer minor units except
in raw transfer payloads, which carry major units as sent by clients.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any

from wallet_ledger.clock import Clock, utcnow
from wallet_ledger.config import LedgerConfig
from wallet_ledger.exceptions import MissingFieldError, ValidationError
from wallet_ledger.ledger import Ledger
from wallet_ledger.logging import setup_logging
from wallet_ledger.models import (
    Account,
    BoundOperation,
    DeliveryChannel,
    OperationKind,
    TransferRequest,
)
from wallet_ledger.money import require_positive
from wallet_ledger.notifications import Notifier, build_notifier
from wallet_ledger.otp import InMemoryOtpChallengeStore, OtpChallengeStore, OtpSweeper
from wallet_ledger.serialization import to_dict
from wallet_ledger.store import AccountStore, InMemoryAccountStore
from wallet_ledger.transfers import TransferOrchestrator, authorize_challenge

logger = logging.getLogger(__name__)


def wire_channel(channel: DeliveryChannel) -> str:
    """Transport value for how a code was delivered: ``email`` or ``none``.

    The log channel reaches no one but the operator, so it reports ``none``.
    """
    return "email" if channel == DeliveryChannel.EMAIL else "none"


class WalletService:
    """Wires storage, ledger, OTP store and orchestrator together.

    Parameters
    ----------
    config : LedgerConfig | None
        Settings; defaults are the reference behaviour.
    store : AccountStore | None
        Account storage (in-memory by default).
    otp_store : OtpChallengeStore | None
        Challenge storage (in-memory by default, using ``notifier``).
    notifier : Notifier | None
        OTP delivery channel when ``otp_store`` is not given; chosen from
        ``config.notification`` if omitted.
    clock : Clock | None
        Shared time source.
    """

    def __init__(
        self,
        config: LedgerConfig | None = None,
        store: AccountStore | None = None,
        otp_store: OtpChallengeStore | None = None,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or LedgerConfig()
        self.clock = clock or utcnow
        self.store = store or InMemoryAccountStore()
        self.otp_store = otp_store or InMemoryOtpChallengeStore(
            notifier=notifier or build_notifier(self.config),
            clock=self.clock,
            code_length=self.config.otp.code_length,
            ttl=timedelta(seconds=self.config.otp.ttl_seconds),
            delivery_timeout=self.config.otp.delivery_timeout_seconds,
        )
        self.ledger = Ledger(
            self.store,
            clock=self.clock,
            settlement_days=self.config.transfer.settlement_days,
        )
        self.orchestrator = TransferOrchestrator(
            self.ledger,
            self.otp_store,
            swift_policy=self.config.transfer.swift_policy,
        )
        self.sweeper = OtpSweeper(self.otp_store, interval=self.config.otp.sweep_interval_seconds)

    @classmethod
    def from_env(cls) -> "WalletService":
        """Build a service from environment variables and configure logging."""
        config = LedgerConfig.from_env()
        setup_logging(config.log_level, config.log_format)
        return cls(config=config)

    # Lifecycle

    async def start(self) -> None:
        self.sweeper.start()

    async def stop(self) -> None:
        await self.sweeper.stop()
        await self.otp_store.notifier.close()

    async def __aenter__(self) -> "WalletService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # Accounts

    async def open_account(
        self,
        holder_name: str,
        account_number: str,
        card_number: str,
        email: str | None = None,
        initial_balance: int = 0,
    ) -> dict[str, Any]:
        """Register an account with caller-supplied unique numbers.

        Numbers are trimmed; blank numbers and duplicates are rejected.
        A non-zero ``initial_balance`` is recorded as an opening deposit.
        """
        account_number = (account_number or "").strip()
        card_number = (card_number or "").strip()
        if not account_number:
            raise MissingFieldError("Account number is required", field="account_number")
        if not card_number:
            raise MissingFieldError("Card number is required", field="card_number")
        if initial_balance:
            require_positive(initial_balance, field="initial_balance")

        account = Account(
            account_id=uuid.uuid4().hex,
            account_number=account_number,
            card_number=card_number,
            holder_name=(holder_name or "").strip(),
            email=email.strip().lower() if email else None,
            balance=0,
            created_at=self.clock(),
        )
        await self.store.add(account)
        balance = 0
        if initial_balance:
            posting = await self.ledger.credit(
                account.account_id, initial_balance, notes="Opening deposit"
            )
            balance = posting.balance

        logger.info("Opened account %s", account.account_number)
        return {
            "accountId": account.account_id,
            "accountNumber": account.account_number,
            "cardNumber": account.card_number,
            "balance": balance,
        }

    async def get_balance(self, account_id: str) -> dict[str, Any]:
        account = await self.ledger.get_account(account_id)
        return {"balance": account.balance, "accountNumber": account.account_number}

    async def deposit(
        self,
        account_id: str,
        amount: int,
        otp_key: str | None = None,
        otp_code: str | None = None,
    ) -> dict[str, Any]:
        """Add funds; when an OTP is supplied it must authorize this deposit."""
        require_positive(amount)
        if otp_key:
            challenge = await self.otp_store.redeem(otp_key, otp_code or "")
            authorize_challenge(challenge, account_id, BoundOperation(OperationKind.DEPOSIT, amount))

        posting = await self.ledger.credit(account_id, amount)
        return {
            "balance": posting.balance,
            "transaction": to_dict(posting.transaction, camel_case=True),
        }

    # OTP

    async def issue_otp(
        self,
        subject_id: str,
        operation_kind: OperationKind | str,
        amount: int,
    ) -> dict[str, Any]:
        """Issue a challenge for ``subject_id`` authorizing one operation."""
        if isinstance(operation_kind, str):
            operation_kind = operation_kind.strip().upper()
        try:
            kind = OperationKind(operation_kind)
        except ValueError:
            raise ValidationError(
                f"Unknown operation {operation_kind!r}", field="operation_kind"
            ) from None
        require_positive(amount)
        account = await self.ledger.get_account(subject_id)

        issued = await self.otp_store.issue(
            subject_id,
            BoundOperation(kind, amount),
            recipient=account.email,
        )
        result: dict[str, Any] = {
            "key": issued.key,
            "codeDeliveredVia": wire_channel(issued.delivered_via),
            "expiresAt": issued.expires_at.isoformat(),
        }
        if self.config.otp.return_code_to_caller:
            result["code"] = issued.code
        return result

    async def redeem_otp(self, key: str, code: str) -> dict[str, Any]:
        challenge = await self.otp_store.redeem(key, code)
        return {
            "subjectId": challenge.subject_id,
            "operation": to_dict(challenge.operation, camel_case=True),
        }

    # Transfers

    async def transfer(self, request: TransferRequest | dict[str, Any]) -> dict[str, Any]:
        """Run a transfer from a request object or a raw transport payload."""
        if isinstance(request, dict):
            request = TransferRequest.from_payload(request)
        result = await self.orchestrator.execute(request)
        return {
            "status": result.status.value.lower(),
            "transferType": result.kind.value.lower(),
            "senderBalance": result.sender_balance,
            "transaction": to_dict(result.transaction, camel_case=True),
        }

    async def get_history(self, account_id: str) -> dict[str, Any]:
        transactions = await self.ledger.history(account_id)
        return {
            "transactions": [to_dict(t, camel_case=True) for t in transactions],
            "count": len(transactions),
        }
