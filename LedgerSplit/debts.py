"""
Debts Module

Exact who-owes-whom ledger between users, without simplification.

Every share whose participant is not the payer becomes a debt from that
participant to the payer. Recorded payments are subtracted from the debt
in the direction they were paid. Debts in opposite directions are kept
apart; they are only netted when asking for the balance between two users.

Data Model:
    debts: dict debtor_id -> dict creditor_id -> Decimal

Functions:
    calculate_debts: Build the raw debt ledger from splits and payments.
    user_balance: What one user owes and is owed.
    balance_between: Signed net balance between two users.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from models import Payment, Split
from validation import EPSILON, payment_amount, split_amounts


def calculate_debts(splits: list[Split], payments: Optional[list[Payment]] = None) -> dict:
    """
    Build the debt ledger.

    Args:
        splits: Splits from any number of events.
        payments: Payments already made between users.

    Returns:
        dict: debtor_id -> {creditor_id: Decimal}. An amount can be zero
        or negative when payments exceed what was owed.

    Raises:
        LedgerValidationError: If an amount or payment is malformed.
    """
    debts = defaultdict(lambda: defaultdict(Decimal))

    for split in splits:
        _, shares = split_amounts(split)
        for user_id, amount_owed in shares:
            # The payer's own share is not a debt
            if user_id != split.paid_by:
                debts[user_id][split.paid_by] += amount_owed

    for payment in payments or []:
        amount = payment_amount(payment)
        debts[payment.paid_by][payment.paid_to] -= amount

    return {debtor: dict(creditors) for debtor, creditors in debts.items()}


def user_balance(user_id: str, debts: dict) -> dict:
    """
    Summarize one user's position in the debt ledger.

    Only debts above 0.01 are counted.

    Returns:
        dict:
            - user_id: string
            - total_balance: Decimal (positive = owed money overall)
            - owes: dict creditor_id -> Decimal
            - owed_by: dict debtor_id -> Decimal
    """
    owes = {
        creditor: amount
        for creditor, amount in debts.get(user_id, {}).items()
        if amount > EPSILON
    }

    owed_by = {}
    for debtor, creditors in debts.items():
        amount = creditors.get(user_id, Decimal("0"))
        if amount > EPSILON:
            owed_by[debtor] = amount

    total_balance = sum(owed_by.values(), Decimal("0")) - sum(owes.values(), Decimal("0"))

    return {
        "user_id": user_id,
        "total_balance": total_balance,
        "owes": owes,
        "owed_by": owed_by
    }


def balance_between(user_id_1: str, user_id_2: str, debts: dict, names: Optional[dict] = None) -> dict:
    """
    Net balance between two users.

    Args:
        user_id_1: First user.
        user_id_2: Second user.
        debts: Ledger from calculate_debts.
        names: Optional user_id -> display name mapping for the summary.

    Returns:
        dict:
            - balance: Decimal (positive = user_id_2 owes user_id_1)
            - summary: string ("Bob owes Alice $5.00" or "Settled up")
    """
    names = names or {}
    name_1 = names.get(user_id_1, user_id_1)
    name_2 = names.get(user_id_2, user_id_2)

    balance = debts.get(user_id_2, {}).get(user_id_1, Decimal("0")) \
        - debts.get(user_id_1, {}).get(user_id_2, Decimal("0"))

    if balance >= EPSILON:
        summary = f"{name_2} owes {name_1} ${balance:.2f}"
    elif balance <= -EPSILON:
        summary = f"{name_1} owes {name_2} ${abs(balance):.2f}"
    else:
        summary = "Settled up"

    return {
        "user_id_1": user_id_1,
        "user_id_2": user_id_2,
        "balance": balance,
        "summary": summary
    }
