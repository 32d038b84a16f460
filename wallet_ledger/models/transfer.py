"""Transfer request and result models."""

from dataclasses import dataclass
from typing import Any

from wallet_ledger.exceptions import ValidationError
from wallet_ledger.models.enums import TransactionStatus, TransferKind
from wallet_ledger.models.transaction import Transaction
from wallet_ledger.money import to_minor_units

INTERNATIONAL_RECIPIENT = "international"


@dataclass(frozen=True)
class TransferRequest:
    """A caller's request to move money out of ``sender_id``.

    ``recipient`` is the local account number, or ``"international"`` (or
    the external account reference) for cross-border transfers.
    """

    sender_id: str
    recipient: str
    amount: int
    recipient_name: str
    otp_key: str
    otp_code: str
    kind: TransferKind = TransferKind.LOCAL
    swift_code: str | None = None
    iban_number: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TransferRequest":
        """Build a request from a transport payload.

        Accepts the wallet API's camelCase keys. ``amount`` is in major
        units (``"12.50"``) and converted exactly to minor units. Without
        ``transferType`` the kind follows ``toAccountNumber``: the literal
        ``"international"`` selects an international transfer.
        """
        recipient = _text(payload, "toAccountNumber")
        raw_kind = payload.get("transferType")
        if raw_kind:
            raw_kind = str(raw_kind).strip().upper()
            try:
                kind = TransferKind(raw_kind)
            except ValueError:
                raise ValidationError(
                    f"Unknown transfer type {raw_kind!r}", field="transferType"
                ) from None
        elif recipient.lower() == INTERNATIONAL_RECIPIENT:
            kind = TransferKind.INTERNATIONAL
        else:
            kind = TransferKind.LOCAL

        if kind == TransferKind.INTERNATIONAL and (
            not recipient or recipient.lower() == INTERNATIONAL_RECIPIENT
        ):
            recipient = INTERNATIONAL_RECIPIENT

        return cls(
            sender_id=_text(payload, "fromAccountId") or _text(payload, "fromUserId"),
            recipient=recipient,
            amount=to_minor_units(payload.get("amount"), field="amount"),
            recipient_name=_text(payload, "recipientName"),
            otp_key=_text(payload, "otpKey"),
            otp_code=_text(payload, "otp") or _text(payload, "otpCode"),
            kind=kind,
            swift_code=_text(payload, "swiftCode") or None,
            iban_number=_text(payload, "ibanNumber") or None,
        )


def _text(payload: dict[str, Any], key: str) -> str:
    """``payload[key]`` as a stripped string; missing or null is ``""``."""
    value = payload.get(key)
    if value is None:
        return ""
    if isinstance(value, (dict, list, bool)):
        raise ValidationError(f"{key} must be a string", field=key)
    return str(value).strip()


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a committed transfer."""

    kind: TransferKind
    status: TransactionStatus
    sender_balance: int
    transaction: Transaction
