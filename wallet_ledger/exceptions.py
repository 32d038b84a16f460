"""Custom exception hierarchy for wallet-ledger."""

from typing import Any


class LedgerError(Exception):
    """Base exception for all wallet-ledger errors."""

    code = "ledger_error"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Structured form for transports."""
        return {"error": self.code, "message": self.message, **self.detail}


# Validation


class ValidationError(LedgerError):
    """Raised when input is malformed or missing."""

    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, **detail: Any) -> None:
        super().__init__(message, field=field, **detail)
        self.field = field


class InvalidAmountError(ValidationError):
    """Raised when an amount is not a positive whole number of minor units."""

    code = "invalid_amount"


class MissingFieldError(ValidationError):
    """Raised when a required field is empty."""

    code = "missing_field"


class MissingSwiftCodeError(ValidationError):
    """Raised when an international transfer has no SWIFT code."""

    code = "missing_swift_code"

    def __init__(self, message: str = "SWIFT code is required for international transfers") -> None:
        super().__init__(message, field="swift_code")


class InvalidSwiftCodeError(ValidationError):
    """Raised when a SWIFT code fails the configured policy."""

    code = "invalid_swift_code"


# Authorization


class AuthorizationError(LedgerError):
    """Raised when an OTP or caller identity does not authorize the operation."""

    code = "authorization_error"


class NotFoundError(LedgerError):
    """Raised when a referenced entity does not exist."""

    code = "not_found"


class OtpNotFoundError(AuthorizationError, NotFoundError):
    """Raised when a challenge key was never issued or is already consumed."""

    code = "otp_not_found"


class OtpRequiredError(AuthorizationError):
    """Raised when a protected operation is attempted without an OTP."""

    code = "otp_required"


class OtpExpiredError(AuthorizationError):
    """Raised when a challenge is redeemed after its expiry."""

    code = "otp_expired"


class OtpCodeMismatchError(AuthorizationError):
    """Raised when the supplied code does not equal the issued one."""

    code = "otp_mismatch"


class OtpOperationMismatchError(AuthorizationError):
    """Raised when a valid challenge was issued for a different operation."""

    code = "otp_operation_mismatch"


class IdentityMismatchError(AuthorizationError):
    """Raised when a challenge is bound to a different subject than the caller."""

    code = "identity_mismatch"


# Conflicts


class ConflictError(LedgerError):
    """Raised when the request conflicts with current ledger state."""

    code = "conflict"


class InsufficientFundsError(ConflictError):
    """Raised when a debit exceeds the available balance."""

    code = "insufficient_funds"

    def __init__(self, current_balance: int, requested: int) -> None:
        super().__init__(
            "Insufficient balance",
            current_balance=current_balance,
            requested=requested,
        )
        self.current_balance = current_balance
        self.requested = requested


class SelfTransferError(ConflictError):
    """Raised when sender and recipient resolve to the same account."""

    code = "self_transfer"


class DuplicateAccountError(ConflictError):
    """Raised when a unique account field is already registered."""

    code = "duplicate_account"

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"{field} already registered", field=field, value=value)
        self.field = field
        self.value = value


class AccountNotFoundError(NotFoundError):
    """Raised when an account id is unknown."""

    code = "account_not_found"


class RecipientNotFoundError(NotFoundError):
    """Raised when no account has the recipient account number."""

    code = "recipient_not_found"


# Infrastructure


class TransientError(LedgerError):
    """Raised when a backing service is unavailable; the request is safe to retry."""

    code = "transient_error"


class StorageUnavailableError(TransientError):
    """Raised when the account or challenge storage cannot be reached."""

    code = "storage_unavailable"


class NotificationError(TransientError):
    """Raised by a notifier when delivery fails."""

    code = "notification_failed"


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""

    code = "configuration_error"
