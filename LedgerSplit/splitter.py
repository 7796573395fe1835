"""
Splitter Module

This module turns an event's splits into per-participant balances.

Features:
    - Net balance per declared participant (Decimal, never float)
    - Optional recorded payments applied on top of the splits
    - Paid / share / net breakdown for display
    - Unknown participant references ignored instead of raising

Data Model:
    Input - participants: list of user_id strings or Participant objects
    Input - splits: list of Split objects
    Input - payments (optional): list of Payment objects

    Output - balances: dict keyed by user_id -> Decimal
        - Positive = participant is owed money
        - Negative = participant owes money
        - Zero     = participant is square

Functions:
    compute_balances: Net balance per participant.
    calculate_balance_breakdown: total_paid / total_share / net_balance per participant.
"""

from decimal import Decimal
from typing import Optional

from models import Payment, Split
from utils import round_to_float
from validation import payment_amount, split_amounts, to_amount


def _participant_ids(participants) -> list[str]:
    """Accept user_id strings or Participant-like objects."""
    return [getattr(p, "user_id", p) for p in participants]


def compute_balances(
    participants,
    splits: list[Split],
    payments: Optional[list[Payment]] = None
) -> dict:
    """
    Compute each participant's net balance for one event.

    For each split:
        1. The payer's balance increases by the full split amount
        2. Each share's participant balance decreases by amount_owed

    For each payment (optional):
        1. The paying participant's balance increases by the amount
        2. The receiving participant's balance decreases by the amount

    Args:
        participants: Declared participants (user_id strings or Participant objects).
        splits: Splits of the event.
        payments: Payments already made between participants.

    Returns:
        dict: user_id -> Decimal, with an entry (possibly zero) for every
        declared participant and no others.

    Raises:
        LedgerValidationError: If any amount is negative, non-finite or not
            numeric, or a payment is malformed. Raised before any
            accumulation takes place.

    Notes:
        - Payers or share participants missing from the participant list
          are ignored for accumulation
        - Decimal addition keeps the result independent of split order
    """
    checked_splits = [(split.paid_by, split_amounts(split)) for split in splits]
    checked_payments = [
        (payment.paid_by, payment.paid_to, payment_amount(payment))
        for payment in payments or []
    ]

    balances = {user_id: Decimal("0") for user_id in _participant_ids(participants)}

    for paid_by, (amount, shares) in checked_splits:
        if paid_by in balances:
            balances[paid_by] += amount

        for user_id, amount_owed in shares:
            if user_id in balances:
                balances[user_id] -= amount_owed

    for paid_by, paid_to, amount in checked_payments:
        if paid_by in balances:
            balances[paid_by] += amount
        if paid_to in balances:
            balances[paid_to] -= amount

    return balances


def calculate_balance_breakdown(
    participants,
    splits: list[Split],
    payments: Optional[list[Payment]] = None
) -> dict:
    """
    Calculate per-participant totals for display.

    Args:
        participants: Declared participants (user_id strings or Participant objects).
        splits: Splits of the event.
        payments: Payments already made between participants.

    Returns:
        dict: Dictionary keyed by user_id containing:
            - total_paid: float (sum of splits paid)
            - total_share: float (sum of amounts owed)
            - payments_sent: float
            - payments_received: float
            - net_balance: float (same figure as compute_balances, rounded)

    Notes:
        - Same unknown-participant rules as compute_balances
        - Rounds to 2 decimal places only at the end
    """
    balances = compute_balances(participants, splits, payments)

    totals = {
        user_id: {
            "total_paid": Decimal("0"),
            "total_share": Decimal("0"),
            "payments_sent": Decimal("0"),
            "payments_received": Decimal("0")
        }
        for user_id in balances
    }

    # Amounts were already validated by compute_balances
    for split in splits:
        amount, shares = split_amounts(split)
        if split.paid_by in totals:
            totals[split.paid_by]["total_paid"] += amount
        for user_id, amount_owed in shares:
            if user_id in totals:
                totals[user_id]["total_share"] += amount_owed

    for payment in payments or []:
        amount = to_amount(payment.amount, "amount")
        if payment.paid_by in totals:
            totals[payment.paid_by]["payments_sent"] += amount
        if payment.paid_to in totals:
            totals[payment.paid_to]["payments_received"] += amount

    result = {}
    for user_id, total in totals.items():
        result[user_id] = {
            "total_paid": round_to_float(total["total_paid"]),
            "total_share": round_to_float(total["total_share"]),
            "payments_sent": round_to_float(total["payments_sent"]),
            "payments_received": round_to_float(total["payments_received"]),
            "net_balance": round_to_float(balances[user_id])
        }

    return result
