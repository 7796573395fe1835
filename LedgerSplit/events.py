"""
Events Module

This module normalizes raw event payloads from the backend API into the
strict entities of models.py, and provides the event lifecycle helpers.

Features:
    - Parse events, splits, participants and payments from loose JSON
    - Accept the backend's mixed shapes (user / users nesting, id / user_id)
    - Tagged results instead of exceptions for bad payloads
    - Create events and add participants or splits

Accepted payload shapes:
    event:
        - event_id, name, created_by, is_dismissed (all optional)
        - participants: list of user_id strings or objects with
          user_id / id / user / users
        - splits: list of split objects (optional, defaults to [])
    split:
        - amount: number or numeric string (>= 0)
        - paid_by: user_id (or paid_by_user object)
        - split_participants (alias: shares): list of
          {user_id, amount_owed}
        - split_id, title, category, date, currency (optional)
    payment:
        - paid_by, paid_to, amount (> 0), payment_id, date

Functions:
    parse_participant: Normalize one participant entry.
    parse_split: Normalize one split.
    parse_payment: Normalize one payment.
    parse_event: Normalize a whole event.
    parse_event_or_raise: Same as parse_event but raising on failure.
    create_event: Start a new event with its creator as first participant.
"""

from typing import Optional

from errors import LedgerValidationError
from models import Event, ParseResult, Participant, Payment, Split, SplitShare
from validation import amounts_match, to_amount, validate_identifier


def _nested_user(data: dict) -> dict:
    """Return the nested user object, whichever key the backend used."""
    nested = data.get("user") or data.get("users")
    # Some joins come back as a one-element list
    if isinstance(nested, list):
        nested = nested[0] if nested else None
    return nested if isinstance(nested, dict) else {}


def _user_id_of(data, field_name: str) -> str:
    if isinstance(data, str):
        return validate_identifier(data, field_name)
    if not isinstance(data, dict):
        raise LedgerValidationError(f"{field_name} entry must be a string or an object", field_name)

    nested = _nested_user(data)
    user_id = data.get("user_id") or data.get("id") or nested.get("user_id") or nested.get("id")
    return validate_identifier(user_id, field_name)


def _participant(data) -> Participant:
    user_id = _user_id_of(data, "participants")
    name = None
    if isinstance(data, dict):
        name = data.get("name") or _nested_user(data).get("name")
    return Participant(user_id=user_id, name=name)


def _split(data) -> Split:
    if not isinstance(data, dict):
        raise LedgerValidationError("split must be an object", "splits")

    paid_by = data.get("paid_by")
    if not paid_by and isinstance(data.get("paid_by_user"), dict):
        payer = data["paid_by_user"]
        paid_by = payer.get("user_id") or payer.get("id")
    paid_by = validate_identifier(paid_by, "paid_by")

    amount = to_amount(data.get("amount"), "amount")

    raw_shares = data.get("split_participants")
    if raw_shares is None:
        raw_shares = data.get("shares") or []
    if not isinstance(raw_shares, list):
        raise LedgerValidationError("split_participants must be a list", "split_participants")

    shares = []
    for raw_share in raw_shares:
        if not isinstance(raw_share, dict):
            raise LedgerValidationError("split participant must be an object", "split_participants")
        shares.append(SplitShare(
            user_id=_user_id_of(raw_share, "split_participants"),
            amount_owed=to_amount(raw_share.get("amount_owed"), "amount_owed")
        ))

    split = Split(
        paid_by=paid_by,
        amount=amount,
        shares=shares,
        split_id=data.get("split_id"),
        title=data.get("title"),
        category=data.get("category"),
        date=data.get("date"),
        currency=data.get("currency") or "USD"
    )

    if not amounts_match(split.total_owed, amount):
        raise LedgerValidationError(
            f"shares add up to {split.total_owed}, expected {amount}", "split_participants"
        )

    return split


def _payment(data) -> Payment:
    if not isinstance(data, dict):
        raise LedgerValidationError("payment must be an object", "payments")

    paid_by = validate_identifier(data.get("paid_by"), "paid_by")
    paid_to = validate_identifier(data.get("paid_to"), "paid_to")
    if paid_by == paid_to:
        raise LedgerValidationError("Cannot record a payment to yourself", "paid_to")

    return Payment(
        paid_by=paid_by,
        paid_to=paid_to,
        amount=to_amount(data.get("amount"), "amount", allow_zero=False),
        payment_id=data.get("payment_id") or data.get("settlement_id"),
        date=data.get("date")
    )


def _parse(builder, data) -> ParseResult:
    try:
        return ParseResult.success(builder(data))
    except LedgerValidationError as e:
        return ParseResult.failure(str(e), e.field)


def parse_participant(data) -> ParseResult:
    """Normalize one participant entry (string or object)."""
    return _parse(_participant, data)


def parse_split(data) -> ParseResult:
    """
    Normalize one split.

    Fails when the payer is missing, an amount is negative, non-finite or
    not numeric, or the shares do not add up to the amount within 0.01.
    """
    return _parse(_split, data)


def parse_payment(data) -> ParseResult:
    """Normalize one recorded payment."""
    return _parse(_payment, data)


def parse_payments(items) -> ParseResult:
    """Normalize a list of payments; fails on the first bad entry."""
    payments = []
    for index, item in enumerate(items or []):
        result = parse_payment(item)
        if not result.ok:
            return ParseResult.failure(f"payments[{index}]: {result.error}", result.field)
        payments.append(result.value)
    return ParseResult.success(payments)


def parse_event(data) -> ParseResult:
    """
    Normalize a raw event payload.

    Args:
        data: Event dict as returned by the backend.

    Returns:
        ParseResult: success with an Event, or failure with a message that
        names the offending entry (e.g. "splits[2]: amount must not be
        negative, got: -5").

    Notes:
        - Missing participants / splits default to empty lists
        - Duplicate participants are collapsed, first occurrence wins
        - Splits may reference users that are not participants; the
          engine ignores those references when accumulating
    """
    if not isinstance(data, dict):
        return ParseResult.failure("event must be an object")

    raw_participants = data.get("participants") or []
    raw_splits = data.get("splits") or []
    if not isinstance(raw_participants, list):
        return ParseResult.failure("participants must be a list", "participants")
    if not isinstance(raw_splits, list):
        return ParseResult.failure("splits must be a list", "splits")

    event = Event(
        event_id=data.get("event_id"),
        name=data.get("name"),
        created_by=data.get("created_by"),
        is_dismissed=bool(data.get("is_dismissed", False))
    )

    for index, raw in enumerate(raw_participants):
        result = parse_participant(raw)
        if not result.ok:
            return ParseResult.failure(f"participants[{index}]: {result.error}", result.field)
        event.add_participant(result.value)

    for index, raw in enumerate(raw_splits):
        result = parse_split(raw)
        if not result.ok:
            return ParseResult.failure(f"splits[{index}]: {result.error}", result.field)
        event.add_split(result.value)

    for raw in data.get("settled_confirmations") or []:
        result = parse_participant(raw)
        if result.ok:
            event.confirmations.add(result.value.user_id)

    return ParseResult.success(event)


def parse_event_or_raise(data) -> Event:
    """
    Normalize a raw event payload.

    Raises:
        LedgerValidationError: If the payload cannot be normalized.
    """
    return parse_event(data).unwrap()


def create_event(
    name: str,
    created_by: str,
    participant_ids: Optional[list[str]] = None,
    event_id: Optional[str] = None
) -> Event:
    """
    Create a new event with its creator as the first participant.

    Args:
        name: Event name.
        created_by: user_id of the creator.
        participant_ids: Other initial participants.
        event_id: Backend identifier, if already assigned.

    Returns:
        Event: The new event, with no splits.

    Raises:
        LedgerValidationError: If name or an identifier is empty.
    """
    name = validate_identifier(name, "name")
    created_by = validate_identifier(created_by, "created_by")

    event = Event(event_id=event_id, name=name, created_by=created_by)
    event.add_participant(Participant(created_by))
    for user_id in participant_ids or []:
        event.add_participant(Participant(validate_identifier(user_id, "participants")))

    return event
