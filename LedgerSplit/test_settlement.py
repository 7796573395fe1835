"""
Tests for settlement: settled status, transfer simplification and
settled confirmations.
"""

from decimal import Decimal

import pytest

from errors import ImbalancedLedger, LedgerValidationError
from events import create_event
from models import Event, Participant, Split, SplitShare, Transfer
from settlement import (
    all_confirmed,
    is_settled,
    simplify_transfers,
    summarize_event,
    toggle_confirmation,
)


def _apply(balances, transfers):
    after = {user_id: Decimal(str(value)) for user_id, value in balances.items()}
    for t in transfers:
        after[t.from_participant] += t.amount
        after[t.to_participant] -= t.amount
    return after


# ── is_settled ─────────────────────────────────────────────────────────────

def test_zero_split_event_is_never_settled():
    assert is_settled({"A": Decimal("0"), "B": Decimal("0")}, 0) is False


def test_settled_when_all_balances_zero():
    assert is_settled({"A": Decimal("0"), "B": Decimal("0")}, 2) is True


def test_not_settled_with_outstanding_balance():
    assert is_settled({"A": Decimal("20"), "B": Decimal("-10"), "C": Decimal("-10")}, 1) is False


def test_settled_within_rounding_tolerance():
    assert is_settled({"A": 0.004, "B": -0.004}, 3) is True


def test_one_cent_is_not_settled():
    assert is_settled({"A": Decimal("0.01"), "B": Decimal("-0.01")}, 1) is False


def test_event_without_participants_but_with_splits_is_settled():
    assert is_settled({}, 1) is True


# ── simplify_transfers ─────────────────────────────────────────────────────

def test_single_creditor_two_debtors():
    balances = {"A": Decimal("30"), "B": Decimal("-10"), "C": Decimal("-20")}

    transfers = simplify_transfers(balances)

    assert transfers == [
        Transfer(from_participant="B", to_participant="A", amount=Decimal("10")),
        Transfer(from_participant="C", to_participant="A", amount=Decimal("20")),
    ]


def test_imbalanced_ledger_raises():
    with pytest.raises(ImbalancedLedger) as exc:
        simplify_transfers({"A": Decimal("10"), "B": Decimal("-5")})

    assert exc.value.total == Decimal("5")


def test_imbalance_within_tolerance_is_accepted():
    transfers = simplify_transfers({"A": Decimal("10.005"), "B": Decimal("-10")})

    assert transfers == [Transfer("B", "A", Decimal("10.00"))]


def test_empty_and_zero_balances_produce_no_transfers():
    assert simplify_transfers({}) == []
    assert simplify_transfers({"A": Decimal("0"), "B": Decimal("0")}) == []


def test_ties_follow_input_order():
    balances = {"A": 10, "B": 10, "C": -10, "D": -10}

    transfers = simplify_transfers(balances)

    assert transfers == [
        Transfer("C", "A", Decimal("10")),
        Transfer("D", "B", Decimal("10")),
    ]


def test_deterministic_across_runs():
    balances = {"A": 25, "B": -5, "C": 15, "D": -20, "E": -15}

    assert simplify_transfers(balances) == simplify_transfers(dict(balances))


def test_transfers_zero_every_balance():
    balances = {
        "A": Decimal("57.31"),
        "B": Decimal("-12.05"),
        "C": Decimal("-40.00"),
        "D": Decimal("19.74"),
        "E": Decimal("-25.00"),
    }

    transfers = simplify_transfers(balances)
    after = _apply(balances, transfers)

    assert all(abs(value) < Decimal("0.01") for value in after.values())
    assert len(transfers) <= len(balances) - 1


def test_sub_cent_balances_end_within_tolerance():
    balances = {"A": Decimal("0.005"), "B": Decimal("0.005"), "C": Decimal("-0.01")}

    transfers = simplify_transfers(balances)
    after = _apply(balances, transfers)

    assert transfers == [Transfer("C", "B", Decimal("0.01"))]
    assert all(abs(value) < Decimal("0.01") for value in after.values())


def test_half_cent_three_way_split_ends_within_tolerance():
    balances = {
        "A": Decimal("30.015"),
        "B": Decimal("-10.005"),
        "C": Decimal("-10.005"),
        "D": Decimal("-10.005"),
    }

    transfers = simplify_transfers(balances)
    after = _apply(balances, transfers)

    assert transfers == [
        Transfer("B", "A", Decimal("10.00")),
        Transfer("C", "A", Decimal("10.01")),
        Transfer("D", "A", Decimal("10.01")),
    ]
    assert all(abs(value) < Decimal("0.01") for value in after.values())


def test_many_half_cent_balances_end_within_tolerance():
    balances = {f"P{i}": Decimal("0.005") for i in range(6)}
    balances["DEBTOR"] = Decimal("-0.03")

    transfers = simplify_transfers(balances)
    after = _apply(balances, transfers)

    assert len(transfers) <= len(balances) - 1
    assert all(abs(value) < Decimal("0.01") for value in after.values())
    assert all(t.amount == t.amount.quantize(Decimal("0.01")) for t in transfers)


def test_transfer_count_bound_many_participants():
    balances = {f"P{i}": Decimal(i) for i in range(1, 8)}
    balances["DEBTOR"] = -sum(balances.values())

    transfers = simplify_transfers(balances)

    assert len(transfers) <= len(balances) - 1
    assert all(t.from_participant == "DEBTOR" for t in transfers)


def test_input_is_not_modified():
    balances = {"A": Decimal("5"), "B": Decimal("-5")}

    simplify_transfers(balances)

    assert balances == {"A": Decimal("5"), "B": Decimal("-5")}


def test_non_numeric_balance_rejected():
    with pytest.raises(LedgerValidationError):
        simplify_transfers({"A": "lots", "B": Decimal("-1")})


# ── summarize_event ────────────────────────────────────────────────────────

def test_summarize_event():
    event = Event(
        event_id="e1",
        participants=[Participant("A"), Participant("B"), Participant("C")],
        splits=[Split("A", Decimal("30"), [
            SplitShare("A", Decimal("10")),
            SplitShare("B", Decimal("10")),
            SplitShare("C", Decimal("10")),
        ])]
    )

    summary = summarize_event(event)

    assert summary["balances"] == {"A": 20, "B": -10, "C": -10}
    assert summary["is_settled"] is False
    assert summary["transfers"] == [Transfer("B", "A", Decimal("10")), Transfer("C", "A", Decimal("10"))]
    assert summary["warnings"] == []


def test_summarize_event_with_unknown_participant_warns_instead_of_raising():
    event = Event(
        event_id="e2",
        participants=[Participant("A"), Participant("B")],
        splits=[Split("A", Decimal("30"), [
            SplitShare("A", Decimal("10")),
            SplitShare("B", Decimal("10")),
            SplitShare("GONE", Decimal("10")),
        ])]
    )

    summary = summarize_event(event)

    assert summary["balances"] == {"A": 20, "B": -10}
    assert summary["transfers"] == []
    assert len(summary["warnings"]) == 1
    assert "do not sum to zero" in summary["warnings"][0]


# ── Confirmations ──────────────────────────────────────────────────────────

def test_all_confirmed_requires_every_participant():
    assert all_confirmed(["A", "B"], {"A"}) is False
    assert all_confirmed(["A", "B"], {"A", "B"}) is True


def test_all_confirmed_without_participants_is_false():
    assert all_confirmed([], set()) is False


def test_toggle_confirmation():
    event = create_event("Trip", "A", ["B"])

    assert toggle_confirmation(event, "A") == {"A"}
    assert all_confirmed(event.participants, event.confirmations) is False
    assert toggle_confirmation(event, "B") == {"A", "B"}
    assert all_confirmed(event.participants, event.confirmations) is True
    assert toggle_confirmation(event, "B") == {"A"}
    assert event.confirmations == {"A"}


def test_toggle_confirmation_returns_a_copy():
    event = create_event("Trip", "A")

    confirmed = toggle_confirmation(event, "A")
    confirmed.add("X")

    assert event.confirmations == {"A"}


def test_toggle_confirmation_unknown_user():
    event = create_event("Trip", "A")

    with pytest.raises(LedgerValidationError):
        toggle_confirmation(event, "Z")
