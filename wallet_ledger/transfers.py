"""Transfer orchestration: validate, verify the OTP, then commit.

A request moves through ``RECEIVED -> VALIDATED -> OTP_VERIFIED ->
COMMITTED`` and stops at ``REJECTED`` on the first failing gate. The OTP
is redeemed (and so consumed) before the ledger is touched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from enum import Enum

from wallet_ledger.exceptions import (
    IdentityMismatchError,
    InvalidSwiftCodeError,
    LedgerError,
    MissingFieldError,
    MissingSwiftCodeError,
    OtpOperationMismatchError,
    OtpRequiredError,
)
from wallet_ledger.ledger import Ledger
from wallet_ledger.models import (
    INTERNATIONAL_RECIPIENT,
    BoundOperation,
    OperationKind,
    OtpChallenge,
    TransferKind,
    TransferRequest,
    TransferResult,
)
from wallet_ledger.money import format_amount, require_positive
from wallet_ledger.otp import OtpChallengeStore

logger = logging.getLogger(__name__)

SWIFT_CODE_PATTERN = re.compile(r"^[A-Z0-9]{8,11}$")


class TransferState(str, Enum):
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    OTP_VERIFIED = "OTP_VERIFIED"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"


def check_swift_code(swift_code: str | None, policy: str = "strict") -> str:
    """Return the normalized SWIFT code or raise.

    ``strict`` requires 8-11 letters or digits; ``non_empty`` accepts any
    non-blank value.
    """
    if not swift_code or not swift_code.strip():
        raise MissingSwiftCodeError()
    normalized = swift_code.strip().upper()
    if policy == "strict" and not SWIFT_CODE_PATTERN.match(normalized):
        raise InvalidSwiftCodeError(
            "SWIFT code must be 8-11 letters or digits", field="swift_code", value=swift_code
        )
    return normalized


def authorize_challenge(
    challenge: OtpChallenge,
    subject_id: str,
    operation: BoundOperation,
) -> None:
    """Check a redeemed challenge against the request it should authorize."""
    if challenge.subject_id != subject_id:
        raise IdentityMismatchError(
            "OTP was issued to a different account", subject_id=subject_id
        )
    if not challenge.operation.matches(operation):
        raise OtpOperationMismatchError(
            "OTP does not authorize this operation",
            expected_kind=operation.kind.value,
            expected_amount=operation.amount,
            bound_kind=challenge.operation.kind.value,
            bound_amount=challenge.operation.amount,
        )


class TransferOrchestrator:
    """Single entry point for money-moving requests.

    Parameters
    ----------
    ledger : Ledger
        Ledger that performs the atomic mutation.
    otp_store : OtpChallengeStore
        Store the request's challenge is redeemed against.
    swift_policy : str
        ``"strict"`` or ``"non_empty"``.
    """

    def __init__(
        self,
        ledger: Ledger,
        otp_store: OtpChallengeStore,
        swift_policy: str = "strict",
    ) -> None:
        self.ledger = ledger
        self.otp_store = otp_store
        self.swift_policy = swift_policy

    def validate(self, request: TransferRequest) -> TransferRequest:
        """Structural checks; returns the request with a normalized SWIFT code."""
        if not request.sender_id:
            raise MissingFieldError("Sender is required", field="sender_id")
        if not request.recipient:
            raise MissingFieldError("Recipient account is required", field="recipient")
        require_positive(request.amount)
        if not request.recipient_name or not request.recipient_name.strip():
            raise MissingFieldError("Recipient name is required", field="recipient_name")
        if not request.otp_key or not request.otp_code:
            raise OtpRequiredError("OTP key and code are required")

        if request.kind == TransferKind.INTERNATIONAL:
            swift_code = check_swift_code(request.swift_code, self.swift_policy)
            if swift_code != request.swift_code:
                request = replace(request, swift_code=swift_code)
        return request

    async def verify_otp(self, request: TransferRequest) -> OtpChallenge:
        """Redeem the request's challenge and check what it was issued for."""
        challenge = await self.otp_store.redeem(request.otp_key, request.otp_code)
        authorize_challenge(
            challenge,
            request.sender_id,
            BoundOperation(OperationKind.for_transfer(request.kind), request.amount),
        )
        return challenge

    async def commit(self, request: TransferRequest) -> TransferResult:
        """Run the ledger operation for the request's kind."""
        if request.kind == TransferKind.INTERNATIONAL:
            posting = await self.ledger.transfer_international(
                request.sender_id,
                request.amount,
                request.recipient_name,
                request.swift_code,
                request.iban_number,
                recipient_reference=(
                    None if request.recipient == INTERNATIONAL_RECIPIENT else request.recipient
                ),
            )
        else:
            posting, _ = await self.ledger.transfer_local(
                request.sender_id,
                request.recipient,
                request.amount,
                request.recipient_name,
            )
        return TransferResult(
            kind=request.kind,
            status=posting.transaction.status,
            sender_balance=posting.balance,
            transaction=posting.transaction,
        )

    async def execute(self, request: TransferRequest) -> TransferResult:
        """Drive one request through every gate.

        Raises
        ------
        LedgerError
            The typed error from the gate that rejected the request; its
            ``stage`` attribute names the last state reached.
        """
        state = TransferState.RECEIVED
        try:
            request = self.validate(request)
            state = TransferState.VALIDATED
            await self.verify_otp(request)
            state = TransferState.OTP_VERIFIED
            result = await self.commit(request)
        except LedgerError as e:
            e.stage = state
            logger.warning(
                "Transfer from %s %s after %s: %s",
                request.sender_id,
                TransferState.REJECTED.value,
                state.value,
                e.code,
                extra={
                    "extra": {"stage": state.value, "error": e.code, "amount": request.amount}
                },
            )
            raise

        logger.info(
            "Transfer from %s %s: %s %s, status %s",
            request.sender_id,
            TransferState.COMMITTED.value,
            request.kind.value,
            format_amount(request.amount),
            result.status.value,
        )
        return result
