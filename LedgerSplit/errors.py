"""
Errors Module

Exception types raised by the LedgerSplit engine.

    LedgerError            - base class for everything raised here
    LedgerValidationError  - malformed input rejected at the boundary
    ImbalancedLedger       - balances handed to the simplifier do not sum to zero
"""


class LedgerError(Exception):
    """Base class for ledger errors."""


class LedgerValidationError(LedgerError, ValueError):
    """
    Raised when input cannot be accepted (negative or non-finite amounts,
    missing payer, shares that do not add up to the split amount).

    Attributes:
        field (str | None): Name of the offending field, if known.
    """

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class ImbalancedLedger(LedgerError, ArithmeticError):
    """
    Raised by the transfer simplifier when the balances it receives do not
    sum to zero within tolerance.

    Attributes:
        total (Decimal): The offending sum of all balances.
    """

    def __init__(self, total):
        super().__init__(f"Balances must sum to zero, got {total}")
        self.total = total
