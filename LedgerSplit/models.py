"""
Models Module

Value classes shared by every LedgerSplit module.

Data Model:
    Participant - a user taking part in an event
        - user_id: string (unique within an event)
        - name: string or None (display only)

    SplitShare - one participant's portion of a split
        - user_id: string
        - amount_owed: Decimal (>= 0)

    Split - a shared bill inside an event
        - paid_by: string (user_id of the payer)
        - amount: Decimal (>= 0, equals the sum of its shares within 0.01)
        - shares: list of SplitShare
        - split_id, title, category, date, currency: optional display fields

    Payment - money already handed over between two participants
        - paid_by: string
        - paid_to: string
        - amount: Decimal (> 0)

    Event - ordered participants and ordered splits

    Transfer - a suggested payment produced by the simplifier

    ParseResult - tagged outcome of the boundary parse step

All amounts are Decimal. Nothing here talks to the network or a database.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from errors import LedgerValidationError
from validation import to_amount


class Participant:
    """
    Represents a participant of an event.

    Attributes:
        user_id (str): Unique identifier of the user.
        name (str | None): Display name, if the backend supplied one.
    """

    def __init__(self, user_id: str, name: Optional[str] = None):
        self.user_id = user_id
        self.name = name

    def to_dict(self) -> dict:
        """Convert participant to a JSON-friendly dictionary."""
        return {"user_id": self.user_id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "Participant":
        """Create a Participant from a dictionary."""
        return cls(user_id=data.get("user_id"), name=data.get("name"))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Participant):
            return NotImplemented
        return self.user_id == other.user_id and self.name == other.name

    def __repr__(self) -> str:
        return f"Participant(user_id='{self.user_id}', name={self.name!r})"


@dataclass(frozen=True)
class SplitShare:
    """One participant's owed portion of a split."""

    user_id: str
    amount_owed: Decimal

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "amount_owed": float(self.amount_owed)}


class Split:
    """
    Represents a shared bill.

    Attributes:
        paid_by (str): user_id of the participant who paid.
        amount (Decimal): Total amount of the bill.
        shares (list[SplitShare]): Owed portions, one per sharing participant.
        split_id (str | None): Backend identifier.
        title (str | None): Short description.
        category (str | None): Optional category (food, travel, ...).
        date (str | None): Date of the bill (YYYY-MM-DD).
        currency (str): Currency code, "USD" unless stated otherwise.
    """

    def __init__(
        self,
        paid_by: str,
        amount: Decimal,
        shares: list[SplitShare],
        split_id: Optional[str] = None,
        title: Optional[str] = None,
        category: Optional[str] = None,
        date: Optional[str] = None,
        currency: str = "USD"
    ):
        self.paid_by = paid_by
        self.amount = amount
        self.shares = list(shares)
        self.split_id = split_id
        self.title = title
        self.category = category
        self.date = date
        self.currency = currency

    @property
    def total_owed(self) -> Decimal:
        """Sum of amount_owed across all shares."""
        return sum((share.amount_owed for share in self.shares), Decimal("0"))

    def to_dict(self) -> dict:
        """Convert split to a JSON-friendly dictionary."""
        return {
            "split_id": self.split_id,
            "title": self.title,
            "amount": float(self.amount),
            "currency": self.currency,
            "paid_by": self.paid_by,
            "category": self.category,
            "date": self.date,
            "split_participants": [share.to_dict() for share in self.shares]
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Split":
        """
        Create a Split from an already-normalized dictionary.

        Amounts are converted with to_amount, so negative or non-finite
        values raise LedgerValidationError. Use events.parse_split for raw
        backend payloads.
        """
        shares = [
            SplitShare(
                user_id=share.get("user_id"),
                amount_owed=to_amount(share.get("amount_owed"), "amount_owed")
            )
            for share in data.get("split_participants", [])
        ]
        return cls(
            paid_by=data.get("paid_by"),
            amount=to_amount(data.get("amount"), "amount"),
            shares=shares,
            split_id=data.get("split_id"),
            title=data.get("title"),
            category=data.get("category"),
            date=data.get("date"),
            currency=data.get("currency") or "USD"
        )

    def __repr__(self) -> str:
        return f"Split(paid_by='{self.paid_by}', amount={self.amount}, shares={len(self.shares)})"


class Payment:
    """
    A payment already made from one participant to another.

    Attributes:
        paid_by (str): user_id of the participant handing over money.
        paid_to (str): user_id of the participant receiving it.
        amount (Decimal): Amount paid (> 0).
        payment_id (str | None): Backend identifier.
        date (str | None): Date of the payment (YYYY-MM-DD).
    """

    def __init__(
        self,
        paid_by: str,
        paid_to: str,
        amount: Decimal,
        payment_id: Optional[str] = None,
        date: Optional[str] = None
    ):
        self.paid_by = paid_by
        self.paid_to = paid_to
        self.amount = amount
        self.payment_id = payment_id
        self.date = date

    def to_dict(self) -> dict:
        return {
            "payment_id": self.payment_id,
            "paid_by": self.paid_by,
            "paid_to": self.paid_to,
            "amount": float(self.amount),
            "date": self.date
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Payment":
        return cls(
            paid_by=data.get("paid_by"),
            paid_to=data.get("paid_to"),
            amount=to_amount(data.get("amount"), "amount", allow_zero=False),
            payment_id=data.get("payment_id") or data.get("settlement_id"),
            date=data.get("date")
        )

    def __repr__(self) -> str:
        return f"Payment(paid_by='{self.paid_by}', paid_to='{self.paid_to}', amount={self.amount})"


class Event:
    """
    Represents an event: an ordered set of participants and an ordered list
    of splits.

    Attributes:
        event_id (str | None): Backend identifier.
        name (str | None): Event name.
        participants (list[Participant]): Participants in insertion order.
        splits (list[Split]): Splits in insertion order.
        created_by (str | None): user_id of the creator.
        is_dismissed (bool): Display-only flag set by the creator.
        confirmations (set[str]): user_ids that confirmed the event as settled.
    """

    def __init__(
        self,
        event_id: Optional[str] = None,
        name: Optional[str] = None,
        participants: Optional[list[Participant]] = None,
        splits: Optional[list[Split]] = None,
        created_by: Optional[str] = None,
        is_dismissed: bool = False,
        confirmations: Optional[set[str]] = None
    ):
        self.event_id = event_id
        self.name = name
        self.participants = []
        self.splits = list(splits or [])
        self.created_by = created_by
        self.is_dismissed = is_dismissed
        self.confirmations = set(confirmations or ())

        for participant in participants or []:
            self.add_participant(participant)

    @property
    def participant_ids(self) -> list[str]:
        """user_ids of all participants, in insertion order."""
        return [p.user_id for p in self.participants]

    def add_participant(self, participant: Participant) -> bool:
        """
        Add a participant unless one with the same user_id already exists.

        Returns:
            bool: True if the participant was added.
        """
        if participant.user_id in self.participant_ids:
            return False
        self.participants.append(participant)
        return True

    def add_split(self, split: Split) -> None:
        """Append a split to the event."""
        self.splits.append(split)

    def dismiss(self, user_id: str) -> None:
        """
        Mark the event as dismissed.

        Raises:
            LedgerValidationError: If user_id is not the event creator.
        """
        if user_id != self.created_by:
            raise LedgerValidationError(
                f"Only the creator can dismiss event {self.event_id}", "created_by"
            )
        self.is_dismissed = True

    def to_dict(self) -> dict:
        """Convert event to a JSON-friendly dictionary."""
        return {
            "event_id": self.event_id,
            "name": self.name,
            "created_by": self.created_by,
            "is_dismissed": self.is_dismissed,
            "participants": [p.to_dict() for p in self.participants],
            "splits": [s.to_dict() for s in self.splits]
        }

    def __repr__(self) -> str:
        return (
            f"Event(event_id={self.event_id!r}, participants={len(self.participants)}, "
            f"splits={len(self.splits)})"
        )


@dataclass(frozen=True)
class Transfer:
    """A suggested payment: from_participant pays to_participant amount."""

    from_participant: str
    to_participant: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "from_participant": self.from_participant,
            "to_participant": self.to_participant,
            "amount": float(self.amount)
        }


@dataclass(frozen=True)
class ParseResult:
    """
    Tagged outcome of a parse step.

    Exactly one of value/error is meaningful: value when ok is True,
    error (a human-readable message) when ok is False.
    """

    ok: bool
    value: Any = None
    error: Optional[str] = None
    field: Optional[str] = None

    @classmethod
    def success(cls, value) -> "ParseResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str, field: Optional[str] = None) -> "ParseResult":
        return cls(ok=False, error=error, field=field)

    def unwrap(self):
        """Return the parsed value or raise LedgerValidationError."""
        if not self.ok:
            raise LedgerValidationError(self.error, self.field)
        return self.value
