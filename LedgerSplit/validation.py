"""
Validation Module

Shared input checks for the LedgerSplit engine and its boundary parser.

Features:
    - Decimal conversion of monetary amounts (numbers or numeric strings)
    - Rejection of negative, non-finite and non-numeric amounts
    - Non-empty identifier checks

Functions:
    to_amount: Convert a raw value to a non-negative finite Decimal.
    validate_identifier: Validate a participant/user identifier.
    amounts_match: Compare two amounts within the ledger tolerance.
"""

from decimal import Decimal, InvalidOperation

from errors import LedgerValidationError


# Rounding tolerance for balances and share sums (one cent)
EPSILON = Decimal("0.01")


def to_amount(value, field_name: str = "amount", allow_zero: bool = True) -> Decimal:
    """
    Convert a raw monetary value to a Decimal.

    Floats are converted through their string form so that 10.1 becomes
    Decimal("10.1") rather than its binary expansion.

    Args:
        value: int, float, Decimal or numeric string.
        field_name: Name of the field for error messages.
        allow_zero: When False, zero is rejected as well as negatives.

    Returns:
        Decimal: The converted amount.

    Raises:
        LedgerValidationError: If the value is missing, not numeric,
            not finite, or negative (or zero when allow_zero is False).
    """
    if value is None or isinstance(value, bool):
        raise LedgerValidationError(f"{field_name} must be a number, got: {value!r}", field_name)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise LedgerValidationError(f"{field_name} must be a number, got: {value!r}", field_name)
    else:
        raise LedgerValidationError(f"{field_name} must be a number, got: {value!r}", field_name)

    if not amount.is_finite():
        raise LedgerValidationError(f"{field_name} must be finite, got: {value!r}", field_name)

    if amount < 0:
        raise LedgerValidationError(f"{field_name} must not be negative, got: {value!r}", field_name)

    if not allow_zero and amount == 0:
        raise LedgerValidationError(f"{field_name} must be a positive number, got: {value!r}", field_name)

    return amount


def validate_identifier(value, field_name: str) -> str:
    """
    Validate that an identifier is a non-empty string.

    Returns the stripped identifier.
    """
    if not isinstance(value, str) or not value.strip():
        raise LedgerValidationError(f"{field_name} must be a non-empty string", field_name)
    return value.strip()


def amounts_match(first: Decimal, second: Decimal) -> bool:
    """Return True when two amounts differ by less than EPSILON."""
    return abs(first - second) < EPSILON


def split_amounts(split) -> tuple:
    """
    Validate a split's amounts.

    Returns:
        tuple: (amount, [(user_id, amount_owed), ...]) as Decimals.
    """
    amount = to_amount(split.amount, "amount")
    shares = [
        (share.user_id, to_amount(share.amount_owed, "amount_owed"))
        for share in split.shares
    ]
    return amount, shares


def payment_amount(payment) -> Decimal:
    """
    Validate a payment and return its amount.

    Raises:
        LedgerValidationError: If either side is missing, both sides are the
            same user, or the amount is not a positive number.
    """
    validate_identifier(payment.paid_by, "paid_by")
    validate_identifier(payment.paid_to, "paid_to")
    if payment.paid_by == payment.paid_to:
        raise LedgerValidationError("Cannot record a payment to yourself", "paid_to")
    return to_amount(payment.amount, "amount", allow_zero=False)
