"""Fixed-point money helpers.

Amounts are integer minor units (cents). Conversion from external
representations is exact: anything that would need rounding is rejected.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from wallet_ledger.exceptions import InvalidAmountError

MINOR_UNITS = 100
_CENT = Decimal("0.01")


def to_minor_units(value: Any, field: str = "amount") -> int:
    """Convert an int, Decimal, float or numeric string to cents.

    Parameters
    ----------
    value : Any
        ``int`` values are taken as whole major units; ``Decimal``, ``str``
        and ``float`` may carry up to two decimal places.
    field : str
        Field name reported in errors.

    Returns
    -------
    int
        Amount in minor units.

    Raises
    ------
    InvalidAmountError
        For booleans, non-finite or non-numeric input, and for
        values with more than two decimal places.
    """
    if isinstance(value, bool):
        raise InvalidAmountError("Unsupported amount type: bool", field=field)

    # JSON transports deliver floats; their shortest repr is the intended value
    if isinstance(value, float):
        value = repr(value)

    if isinstance(value, int):
        return value * MINOR_UNITS

    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidAmountError(f"Invalid amount: {value!r}", field=field) from None

    if not isinstance(value, Decimal):
        raise InvalidAmountError(f"Unsupported amount type: {type(value).__name__}", field=field)

    if not value.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value}", field=field)

    try:
        exact = value == value.quantize(_CENT)
    except InvalidOperation:
        raise InvalidAmountError(f"Amount out of range: {value}", field=field) from None
    if not exact:
        raise InvalidAmountError(
            f"Amount {value} has more than two decimal places", field=field
        )

    return int(value * MINOR_UNITS)


def require_positive(amount: Any, field: str = "amount") -> int:
    """Return ``amount`` if it is a positive int, raise otherwise."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(
            f"Amount must be an integer number of minor units, got {type(amount).__name__}",
            field=field,
        )
    if amount <= 0:
        raise InvalidAmountError("Amount must be greater than 0", field=field, amount=amount)
    return amount


def format_amount(cents: int) -> str:
    """Render cents as a plain decimal string (``-300`` -> ``"-3.00"``)."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), MINOR_UNITS)
    return f"{sign}{whole}.{frac:02d}"
