"""
Analytics Module

This module provides spending summaries and data-quality warnings for an
event.

Features:
    - Total spent and largest split
    - Category-wise spending breakdown
    - Daily spending and highest spending day
    - Per-participant payer totals
    - Rule-based warnings (unknown participants, dominant payer)

Data Model:
    Input - event: Event from events.parse_event

    Output - dict containing:
        - analytics: dict with total_spent, category_breakdown, etc.
        - warnings: list of warning strings

Functions:
    generate_analytics: Generate analytics and warnings for one event.
"""

from collections import defaultdict
from decimal import Decimal

from models import Event
from utils import round_to_float


UNCATEGORIZED = "uncategorized"

# A single payer above this share of total spend gets a warning
DOMINANT_PAYER_PERCENT = Decimal("60")


def _unknown_references(event: Event) -> list[str]:
    """user_ids referenced by splits but missing from the participant list, in first-seen order."""
    known = set(event.participant_ids)
    unknown = []
    for split in event.splits:
        for user_id in [split.paid_by] + [share.user_id for share in split.shares]:
            if user_id not in known and user_id not in unknown:
                unknown.append(user_id)
    return unknown


def generate_analytics(event: Event) -> dict:
    """
    Generate analytics and warnings from an event's splits.

    Analytics computed:
        - total_spent: Sum of all split amounts
        - split_count: Number of splits
        - category_breakdown: Total per category ("uncategorized" when missing)
        - daily_spending: Total per date (splits without a date are skipped)
        - highest_spending_day: Date and amount of maximum daily spend
        - payer_totals: Total paid by each payer
        - largest_split: split_id, title and amount of the biggest split

    Warnings generated (rule-based):
        - A split references a user who is not a participant; that user's
          amounts are left out of the balances
        - One payer covered more than 60% of total spend (needs 2+ participants)

    Returns:
        dict: {"analytics": dict, "warnings": list[str]}
    """
    category_totals = defaultdict(Decimal)
    daily_totals = defaultdict(Decimal)
    payer_totals = defaultdict(Decimal)
    total_spent = Decimal("0")
    largest = None

    for split in event.splits:
        amount = split.amount
        category_totals[split.category or UNCATEGORIZED] += amount
        if split.date:
            daily_totals[split.date] += amount
        payer_totals[split.paid_by] += amount
        total_spent += amount

        if largest is None or amount > largest.amount:
            largest = split

    highest_spending_day = {"date": None, "amount": 0.0}
    if daily_totals:
        max_date = max(daily_totals, key=daily_totals.get)
        highest_spending_day = {
            "date": max_date,
            "amount": round_to_float(daily_totals[max_date])
        }

    largest_split = None
    if largest is not None:
        largest_split = {
            "split_id": largest.split_id,
            "title": largest.title,
            "amount": round_to_float(largest.amount)
        }

    analytics = {
        "total_spent": round_to_float(total_spent),
        "split_count": len(event.splits),
        "category_breakdown": {
            category: round_to_float(amount) for category, amount in category_totals.items()
        },
        "daily_spending": {
            date: round_to_float(amount) for date, amount in sorted(daily_totals.items())
        },
        "highest_spending_day": highest_spending_day,
        "payer_totals": {
            payer_id: round_to_float(amount) for payer_id, amount in payer_totals.items()
        },
        "largest_split": largest_split
    }

    warnings = []
    names = {p.user_id: p.name or p.user_id for p in event.participants}

    for user_id in _unknown_references(event):
        warnings.append(
            f"Warning: {user_id} appears in splits but is not a participant; "
            f"their amounts are not included in balances"
        )

    if total_spent > 0 and len(event.participants) > 1:
        for payer_id, amount in payer_totals.items():
            percentage = (amount / total_spent) * 100
            if percentage > DOMINANT_PAYER_PERCENT:
                warnings.append(
                    f"Warning: {names.get(payer_id, payer_id)} paid {round_to_float(percentage)}% "
                    f"of total spend ({round_to_float(amount)} of {round_to_float(total_spent)})"
                )

    return {
        "analytics": analytics,
        "warnings": warnings
    }
