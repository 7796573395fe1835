"""
Settlement Module

This module handles the settlement decisions for the LedgerSplit engine.

Features:
    - Decide whether an event is settled
    - Convert net balances into suggested transfers (greedy matching)
    - Refuse balances that do not sum to zero
    - Track per-participant "settled" confirmations

Data Model:
    Input - balances (dict keyed by user_id):
        - Decimal, float or numeric string net balance
          (positive = owed money, negative = owes money)

    Output - list of Transfer:
        - from_participant: string (debtor who pays)
        - to_participant: string (creditor who receives)
        - amount: Decimal (rounded to 2 decimal places)

Functions:
    is_settled: Decide whether an event is settled.
    simplify_transfers: Convert balances into a short list of transfers.
    summarize_event: Balances, settled flag and transfers for one event.
    all_confirmed: Whether every participant confirmed the event as settled.
    toggle_confirmation: Add or remove one participant's confirmation.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from errors import ImbalancedLedger, LedgerValidationError
from models import Event, Payment, Transfer
from splitter import compute_balances
from utils import round_money
from validation import EPSILON


CENT = Decimal("0.01")


def _as_decimal(user_id, value) -> Decimal:
    """Convert a signed balance to Decimal, rejecting non-finite values."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise LedgerValidationError(f"Balance for {user_id} must be a number, got: {value!r}", "balances")

    if not amount.is_finite():
        raise LedgerValidationError(f"Balance for {user_id} must be finite, got: {value!r}", "balances")
    return amount


def is_settled(balances: dict, split_count: int) -> bool:
    """
    Decide whether an event is settled.

    Args:
        balances: Net balance per participant (see compute_balances).
        split_count: Number of splits in the event.

    Returns:
        bool: False when the event has no splits; otherwise True only if
        every absolute balance is below 0.01.
    """
    # No splits means nothing happened, not that everything is reconciled
    if split_count <= 0:
        return False

    return all(
        abs(_as_decimal(user_id, balance)) < EPSILON
        for user_id, balance in balances.items()
    )


def _round_to_cents(amounts: dict) -> dict:
    """
    Round every balance to cents so the rounded balances sum to exactly zero.

    Rounding each balance on its own can leave a few cents over. Those are
    taken back one cent at a time from the balances that rounding pushed
    furthest in the same direction, so every rounded balance stays less
    than 0.01 away from the unrounded one.
    """
    rounded = {user_id: round_money(amount) for user_id, amount in amounts.items()}
    leftover = sum(rounded.values(), Decimal("0"))
    if leftover == 0:
        return rounded

    direction = 1 if leftover > 0 else -1
    position = {user_id: index for index, user_id in enumerate(amounts)}
    # Biggest rounding error in the leftover's direction first, then input order
    candidates = sorted(
        amounts,
        key=lambda user_id: (-(rounded[user_id] - amounts[user_id]) * direction, position[user_id])
    )

    for user_id in candidates[:int(abs(leftover) / CENT)]:
        rounded[user_id] -= CENT * direction
    return rounded


def simplify_transfers(balances: dict) -> list[Transfer]:
    """
    Convert net balances into suggested transfers.

    Uses a greedy algorithm:
        1. Round the balances to cents (see _round_to_cents)
        2. Separate participants into debtors (balance < 0) and creditors (balance > 0)
        3. Take the largest remaining debtor and the largest remaining creditor
           (equal amounts: the one listed first in balances wins)
        4. Transfer the smaller of the two amounts and reduce both
        5. Drop anyone whose remaining amount reaches zero
        6. Repeat until no debtors or no creditors remain

    Args:
        balances: Net balance per participant. Iteration order of the
            mapping is the tie-break order.

    Returns:
        list[Transfer]: Transfers ordered by the debtor's position in
        balances, then by the creditor's position. At most
        len(balances) - 1 transfers are produced. Applying them leaves
        every balance below 0.01 in absolute value.

    Raises:
        ImbalancedLedger: If the balances do not sum to zero within 0.01.
        LedgerValidationError: If a balance is not a finite number.

    Notes:
        - Does NOT modify input balances
        - Participants whose balance rounds to 0.00 take no part in any transfer
    """
    amounts = {user_id: _as_decimal(user_id, value) for user_id, value in balances.items()}

    total = sum(amounts.values(), Decimal("0"))
    if abs(total) >= EPSILON:
        raise ImbalancedLedger(total)

    position = {user_id: index for index, user_id in enumerate(amounts)}
    rounded = _round_to_cents(amounts)

    # Amounts stored as positive for both sides
    debtors = [[user_id, -net] for user_id, net in rounded.items() if net < 0]
    creditors = [[user_id, net] for user_id, net in rounded.items() if net > 0]

    def _largest(entries):
        return max(entries, key=lambda entry: (entry[1], -position[entry[0]]))

    transfers = []
    while debtors and creditors:
        debtor = _largest(debtors)
        creditor = _largest(creditors)

        amount = min(debtor[1], creditor[1])
        transfers.append(Transfer(
            from_participant=debtor[0],
            to_participant=creditor[0],
            amount=amount
        ))

        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] == 0:
            debtors.remove(debtor)
        if creditor[1] == 0:
            creditors.remove(creditor)

    transfers.sort(key=lambda t: (position[t.from_participant], position[t.to_participant]))
    return transfers


def summarize_event(event: Event, payments: Optional[list[Payment]] = None) -> dict:
    """
    Compute everything the UI shows for one event.

    Splits may reference users who are no longer participants, so the
    balances can fail to sum to zero. In that case no transfers are
    suggested and a warning is returned instead of raising.

    Returns:
        dict: balances (user_id -> Decimal), is_settled (bool),
        transfers (list[Transfer]) and warnings (list[str]).
    """
    balances = compute_balances(event.participants, event.splits, payments)

    warnings = []
    try:
        transfers = simplify_transfers(balances)
    except ImbalancedLedger as e:
        transfers = []
        warnings.append(f"Warning: balances do not sum to zero ({e.total}); no transfers suggested")

    return {
        "balances": balances,
        "is_settled": is_settled(balances, len(event.splits)),
        "transfers": transfers,
        "warnings": warnings
    }


def all_confirmed(participants, confirmations) -> bool:
    """
    Return True when the event has participants and every one of them
    confirmed the event as settled.
    """
    participant_ids = {getattr(p, "user_id", p) for p in participants}
    if not participant_ids:
        return False
    return participant_ids <= set(confirmations)


def toggle_confirmation(event: Event, user_id: str) -> set[str]:
    """
    Add user_id's settled confirmation, or remove it if already present.

    Returns:
        set[str]: Copy of the event's confirmations after the change.

    Raises:
        LedgerValidationError: If user_id is not a participant of the event.
    """
    if user_id not in event.participant_ids:
        raise LedgerValidationError(f"{user_id} is not a participant of this event", "user_id")

    if user_id in event.confirmations:
        event.confirmations.discard(user_id)
    else:
        event.confirmations.add(user_id)

    return set(event.confirmations)
