"""
LedgerSplit - FastAPI Web Backend

This module serves the LedgerSplit balance engine over HTTP. It is
stateless: every request carries the event data it needs (as returned by
the main backend API) and nothing is stored between requests.

Features:
    - Per-participant balances and settled status for an event
    - Suggested settlement transfers
    - Analytics, warnings and per-participant explanations
    - Pairwise debts for a user and between two users

Endpoints:
    GET  /health                                  - Health check
    POST /events/balances                         - Balances, status, transfers, analytics
    POST /events/transfers                        - Simplify a balance mapping into transfers
    POST /debts/users/{user_id}                   - What a user owes and is owed
    POST /debts/between/{user_id_1}/{user_id_2}   - Net balance between two users

Usage:
    uvicorn main:app --reload
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from analytics import generate_analytics
from config.ledger_config import get_config
from debts import balance_between, calculate_debts, user_balance
from errors import ImbalancedLedger
from events import parse_event, parse_payments, parse_split
from settlement import all_confirmed, simplify_transfers, summarize_event
from splitter import calculate_balance_breakdown
from utils import explain_all_participants, format_balance


logging.basicConfig(
    level=get_config().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger("ledgersplit")


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class EventPayload(BaseModel):
    """Request model for an event as returned by the backend API."""
    model_config = ConfigDict(extra="allow")

    event_id: Optional[str] = Field(None, description="Event identifier")
    name: Optional[str] = Field(None, description="Event name")
    created_by: Optional[str] = Field(None, description="user_id of the creator")
    participants: list[Any] = Field(default_factory=list, description="Participants (ids or objects)")
    splits: list[Any] = Field(default_factory=list, description="Splits of the event")
    payments: list[Any] = Field(default_factory=list, description="Payments already made")
    settled_confirmations: list[Any] = Field(default_factory=list, description="Users who confirmed")


class BalancesPayload(BaseModel):
    """Request model for transfer simplification."""
    balances: dict[str, Decimal] = Field(..., description="Net balance per participant")


class DebtsPayload(BaseModel):
    """Request model for pairwise debt queries."""
    splits: list[Any] = Field(default_factory=list, description="Splits across events")
    payments: list[Any] = Field(default_factory=list, description="Payments already made")
    names: dict[str, str] = Field(default_factory=dict, description="Optional user_id -> name")


class EventBalancesResponse(BaseModel):
    """Response model for event balance calculation."""
    event_id: Optional[str]
    balances: dict
    is_settled: bool
    all_confirmed: bool
    transfers: list
    analytics: dict
    warnings: list
    explanations: list


class TransfersResponse(BaseModel):
    """Response model for transfer simplification."""
    transfers: list


class UserDebtsResponse(BaseModel):
    """Response model for a user's debt summary."""
    user_id: str
    total_balance: float
    owes: dict
    owed_by: dict


class BetweenResponse(BaseModel):
    """Response model for the balance between two users."""
    user_id_1: str
    user_id_2: str
    balance: float
    summary: str


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="LedgerSplit",
    description="Balance and settlement engine for shared event bills",
    version="1.0.0"
)


# =============================================================================
# Helper Functions
# =============================================================================

def _splits_from(items: list) -> list:
    """Parse raw splits, raising HTTP 400 on the first bad entry."""
    splits = []
    for index, item in enumerate(items):
        result = parse_split(item)
        if not result.ok:
            raise HTTPException(status_code=400, detail=f"splits[{index}]: {result.error}")
        splits.append(result.value)
    return splits


def _payments_from(items: list) -> list:
    result = parse_payments(items)
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.error)
    return result.value


def _amounts_to_float(mapping: dict) -> dict:
    return {key: float(value) for key, value in mapping.items()}


# =============================================================================
# API Endpoints
# =============================================================================

@app.post("/events/balances", response_model=EventBalancesResponse)
async def event_balances(payload: EventPayload):
    """
    Calculate everything the event page shows.

    Request flow:
        1. Normalize the event payload (events.py)
        2. Calculate balances, settled status and transfers (settlement.py)
        3. Generate analytics and warnings (analytics.py)
        4. Generate explanations (utils.py)
        5. Return complete results
    """
    try:
        # Step 1: Normalize the payload
        parsed = parse_event(payload.model_dump())
        if not parsed.ok:
            raise HTTPException(status_code=400, detail=parsed.error)
        event = parsed.value
        payments = _payments_from(payload.payments)

        # Step 2: Balances, settled status and transfers
        summary = summarize_event(event, payments)
        balances = summary["balances"]
        settled = summary["is_settled"]
        transfers = [t.to_dict() for t in summary["transfers"]]
        if summary["warnings"]:
            # Happens when splits reference users outside the participant list
            logger.warning("Event %s: no transfers suggested", event.event_id)

        breakdown = calculate_balance_breakdown(event.participants, event.splits, payments)
        for user_id, entry in breakdown.items():
            entry["display"] = format_balance(balances[user_id])

        # Step 3: Analytics and warnings
        result = generate_analytics(event)
        warnings = result["warnings"] + summary["warnings"]

        # Step 4: Explanations
        explanations = explain_all_participants(event, breakdown)

        logger.info(
            "Event %s: %d participants, %d splits, settled=%s",
            event.event_id, len(event.participants), len(event.splits), settled
        )

        return EventBalancesResponse(
            event_id=event.event_id,
            balances=breakdown,
            is_settled=settled,
            all_confirmed=all_confirmed(event.participants, event.confirmations),
            transfers=transfers,
            analytics=result["analytics"],
            warnings=warnings,
            explanations=explanations
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Event balance calculation failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/events/transfers", response_model=TransfersResponse)
async def event_transfers(payload: BalancesPayload):
    """
    Simplify a balance mapping into suggested transfers.

    Returns 422 when the balances do not sum to zero.
    """
    try:
        transfers = simplify_transfers(payload.balances)
        return TransfersResponse(transfers=[t.to_dict() for t in transfers])

    except ImbalancedLedger as e:
        logger.info("Rejected imbalanced ledger: total=%s", e.total)
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Transfer simplification failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/debts/users/{user_id}", response_model=UserDebtsResponse)
async def user_debts(user_id: str, payload: DebtsPayload):
    """
    What one user owes and is owed, from exact pairwise debts.
    """
    try:
        debts = calculate_debts(_splits_from(payload.splits), _payments_from(payload.payments))
        summary = user_balance(user_id, debts)

        return UserDebtsResponse(
            user_id=user_id,
            total_balance=float(summary["total_balance"]),
            owes=_amounts_to_float(summary["owes"]),
            owed_by=_amounts_to_float(summary["owed_by"])
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("User debt calculation failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/debts/between/{user_id_1}/{user_id_2}", response_model=BetweenResponse)
async def debts_between(user_id_1: str, user_id_2: str, payload: DebtsPayload):
    """
    Net balance between two users (positive: user_id_2 owes user_id_1).
    """
    try:
        debts = calculate_debts(_splits_from(payload.splits), _payments_from(payload.payments))
        result = balance_between(user_id_1, user_id_2, debts, payload.names)

        return BetweenResponse(
            user_id_1=user_id_1,
            user_id_2=user_id_2,
            balance=float(result["balance"]),
            summary=result["summary"]
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Pairwise balance calculation failed")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "LedgerSplit"}


# =============================================================================
# Run with: python main.py
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    config = get_config()
    uvicorn.run("main:app", host=config.HOST, port=config.PORT, reload=True)
