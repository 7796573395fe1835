"""
Tests for the boundary parse step and event lifecycle helpers.
"""

from decimal import Decimal

import pytest

from errors import LedgerValidationError
from events import (
    create_event,
    parse_event,
    parse_event_or_raise,
    parse_participant,
    parse_payment,
    parse_split,
)
from models import Participant, Split


def _raw_event(**overrides):
    event = {
        "event_id": "evt-1",
        "name": "Pizza party",
        "created_by": "A",
        "participants": [{"user_id": "A"}, {"user_id": "B"}],
        "splits": [
            {
                "split_id": "s1",
                "title": "Pizza",
                "amount": 20,
                "paid_by": "A",
                "split_participants": [
                    {"user_id": "A", "amount_owed": 10},
                    {"user_id": "B", "amount_owed": 10}
                ]
            }
        ]
    }
    event.update(overrides)
    return event


# ── Events ─────────────────────────────────────────────────────────────────

def test_parse_event_success():
    result = parse_event(_raw_event())

    assert result.ok
    event = result.value
    assert event.event_id == "evt-1"
    assert event.participant_ids == ["A", "B"]
    assert len(event.splits) == 1
    assert event.splits[0].amount == Decimal("20")
    assert event.splits[0].title == "Pizza"


def test_missing_collections_default_to_empty():
    result = parse_event({"event_id": "evt-2"})

    assert result.ok
    assert result.value.participants == []
    assert result.value.splits == []
    assert result.value.name is None


def test_duplicate_participants_collapsed():
    result = parse_event(_raw_event(participants=["A", {"user_id": "B"}, {"id": "A"}]))

    assert result.value.participant_ids == ["A", "B"]


def test_nested_user_and_users_keys():
    participants = [
        {"event_id": "evt-1", "user": {"id": "A", "name": "Alice"}},
        {"event_id": "evt-1", "users": {"user_id": "B", "name": "Bob"}},
        {"users": [{"id": "C"}]},
    ]

    result = parse_event(_raw_event(participants=participants))

    assert result.ok
    assert result.value.participants == [
        Participant("A", "Alice"),
        Participant("B", "Bob"),
        Participant("C"),
    ]


def test_split_referencing_non_participant_is_accepted():
    raw = _raw_event()
    raw["splits"][0]["split_participants"].append({"user_id": "GONE", "amount_owed": 0})

    result = parse_event(raw)

    assert result.ok


def test_bad_split_reported_with_index():
    raw = _raw_event()
    raw["splits"].append({"amount": -5, "paid_by": "A", "split_participants": []})

    result = parse_event(raw)

    assert not result.ok
    assert result.error.startswith("splits[1]:")
    assert result.field == "amount"


def test_bad_participant_reported_with_index():
    result = parse_event(_raw_event(participants=["A", {"name": "nobody"}]))

    assert not result.ok
    assert result.error.startswith("participants[1]:")


def test_non_dict_event_fails():
    assert not parse_event(["not", "an", "event"]).ok


def test_settled_confirmations_parsed():
    result = parse_event(_raw_event(settled_confirmations=[{"event_id": "evt-1", "user_id": "B"}]))

    assert result.value.confirmations == {"B"}


def test_parse_event_or_raise():
    with pytest.raises(LedgerValidationError):
        parse_event_or_raise({"participants": "A,B"})


# ── Splits ─────────────────────────────────────────────────────────────────

def test_split_string_amounts():
    result = parse_split({
        "amount": "12.50",
        "paid_by": "A",
        "split_participants": [
            {"user_id": "A", "amount_owed": "6.25"},
            {"user_id": "B", "amount_owed": "6.25"}
        ]
    })

    assert result.ok
    assert result.value.amount == Decimal("12.50")
    assert result.value.currency == "USD"


def test_split_shares_alias_and_paid_by_user():
    result = parse_split({
        "amount": 9,
        "paid_by_user": {"id": "B"},
        "shares": [{"user": {"id": "A"}, "amount_owed": 9}]
    })

    assert result.ok
    assert result.value.paid_by == "B"
    assert result.value.shares[0].user_id == "A"


def test_shares_within_tolerance_accepted():
    result = parse_split({
        "amount": 10,
        "paid_by": "A",
        "split_participants": [
            {"user_id": "A", "amount_owed": 3.33},
            {"user_id": "B", "amount_owed": 3.33},
            {"user_id": "C", "amount_owed": 3.335}
        ]
    })

    assert result.ok


def test_shares_not_matching_amount_rejected():
    result = parse_split({
        "amount": 20,
        "paid_by": "A",
        "split_participants": [{"user_id": "A", "amount_owed": 10}]
    })

    assert not result.ok
    assert result.field == "split_participants"


def test_split_missing_payer_rejected():
    result = parse_split({"amount": 0, "split_participants": []})

    assert not result.ok
    assert result.field == "paid_by"


@pytest.mark.parametrize("amount", ["NaN", "Infinity", "abc", None, True])
def test_split_bad_amount_rejected(amount):
    result = parse_split({"amount": amount, "paid_by": "A", "split_participants": []})

    assert not result.ok
    assert result.field == "amount"


def test_unwrap_raises_on_failure():
    with pytest.raises(LedgerValidationError):
        parse_split({"amount": -1, "paid_by": "A"}).unwrap()


def test_parse_participant_from_string():
    assert parse_participant("  A ").value == Participant("A")


# ── Payments ───────────────────────────────────────────────────────────────

def test_parse_payment():
    result = parse_payment({"settlement_id": "p1", "paid_by": "B", "paid_to": "A", "amount": "5"})

    assert result.ok
    assert result.value.payment_id == "p1"
    assert result.value.amount == Decimal("5")


def test_parse_payment_to_self_rejected():
    assert not parse_payment({"paid_by": "A", "paid_to": "A", "amount": 5}).ok


def test_parse_payment_zero_rejected():
    assert not parse_payment({"paid_by": "A", "paid_to": "B", "amount": 0}).ok


# ── Lifecycle ──────────────────────────────────────────────────────────────

def test_create_event_includes_creator():
    event = create_event("Trip", "A", ["B", "A", "C"])

    assert event.participant_ids == ["A", "B", "C"]
    assert event.created_by == "A"
    assert event.splits == []


def test_create_event_requires_name():
    with pytest.raises(LedgerValidationError):
        create_event("  ", "A")


def test_add_participant_and_split():
    event = create_event("Trip", "A")

    assert event.add_participant(Participant("B")) is True
    assert event.add_participant(Participant("B")) is False

    event.add_split(Split("A", Decimal("4"), []))
    assert len(event.splits) == 1


def test_only_creator_can_dismiss():
    event = create_event("Trip", "A", ["B"])

    with pytest.raises(LedgerValidationError):
        event.dismiss("B")
    assert event.is_dismissed is False

    event.dismiss("A")
    assert event.is_dismissed is True
