"""
Utilities Module

This module provides display helpers for the LedgerSplit engine.

Features:
    - Money rounding (Decimal, ROUND_HALF_UP)
    - Currency and signed balance formatting
    - Per-participant explanation of how a balance was reached

Data Model:
    Input - event: Event from events.parse_event
    Input - breakdown: dict from splitter.calculate_balance_breakdown with:
        - total_paid: float
        - total_share: float
        - net_balance: float

Functions:
    round_money: Round a Decimal to cents.
    round_to_float: Round to cents and convert to float for JSON output.
    format_currency: Format an amount with a currency symbol.
    format_balance: Format a signed balance the way the balance panel shows it.
    explain_participant_share: Detailed breakdown for one participant.
    explain_all_participants: Detailed breakdown for every participant.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from config.ledger_config import get_config
from models import Event
from validation import EPSILON


def round_money(value) -> Decimal:
    """
    Round an amount to 2 decimal places.

    Args:
        value: Decimal, int, float or numeric string.

    Returns:
        Decimal: Value quantized to cents with ROUND_HALF_UP.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def round_to_float(value) -> float:
    """Round an amount to 2 decimal places and convert to float."""
    return float(round_money(value))


def format_currency(amount, symbol: Optional[str] = None) -> str:
    """
    Format a monetary amount with a currency symbol.

    Args:
        amount: The amount to format.
        symbol: Currency symbol (default: LEDGER_CURRENCY_SYMBOL).

    Returns:
        str: Formatted string like "$1,234.56" or "-$3.00".
    """
    if symbol is None:
        symbol = get_config().CURRENCY_SYMBOL
    rounded = round_money(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"


def format_balance(balance, symbol: Optional[str] = None) -> str:
    """
    Format a signed balance: "+$12.50", "-$3.00", or "$0.00" when the
    balance is within 0.01 of zero.
    """
    if symbol is None:
        symbol = get_config().CURRENCY_SYMBOL
    if not isinstance(balance, Decimal):
        balance = Decimal(str(balance))

    if balance > EPSILON:
        return f"+{format_currency(balance, symbol)}"
    if balance < -EPSILON:
        return format_currency(balance, symbol)
    return f"{symbol}0.00"


def explain_participant_share(user_id: str, event: Event, breakdown: dict) -> dict:
    """
    Explain how a participant's balance was calculated.

    For each split that involves the participant (as payer or as a share):
        - Shows split details (id, title, category, date, total amount, payer)
        - Shows the participant's owed share and whether they paid

    Args:
        user_id: Participant to explain.
        event: The event the balance belongs to.
        breakdown: Output from calculate_balance_breakdown().

    Returns:
        dict: Explanation containing:
            - user_id: string
            - split_contributions: list of dicts with split breakdown
            - total_share: float
            - total_paid: float
            - net_balance: float
            - error: string (only when user_id is not a participant)
    """
    if user_id not in event.participant_ids:
        return {
            "user_id": user_id,
            "split_contributions": [],
            "total_share": 0.0,
            "total_paid": 0.0,
            "net_balance": 0.0,
            "error": f"Participant {user_id} not found"
        }

    balance_info = breakdown.get(user_id, {})

    contributions = []
    for split in event.splits:
        owed = sum(
            (share.amount_owed for share in split.shares if share.user_id == user_id),
            Decimal("0")
        )
        paid = split.paid_by == user_id

        # Not involved in this split at all
        if not paid and not any(share.user_id == user_id for share in split.shares):
            continue

        contributions.append({
            "split_id": split.split_id,
            "title": split.title,
            "category": split.category,
            "date": split.date,
            "total_split_amount": round_to_float(split.amount),
            "paid_by": split.paid_by,
            "paid": paid,
            "participant_share": round_to_float(owed)
        })

    return {
        "user_id": user_id,
        "split_contributions": contributions,
        "total_share": balance_info.get("total_share", 0.0),
        "total_paid": balance_info.get("total_paid", 0.0),
        "net_balance": balance_info.get("net_balance", 0.0)
    }


def explain_all_participants(event: Event, breakdown: dict) -> list[dict]:
    """
    Explanations for every participant, in the event's participant order.
    """
    return [
        explain_participant_share(user_id, event, breakdown)
        for user_id in event.participant_ids
    ]
