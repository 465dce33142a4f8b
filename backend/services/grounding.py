"""Grounding payload — the only facts the reasoning service ever sees."""
import hashlib
import json
import logging
from typing import Optional, Sequence
from datetime import date

from schemas import GroundingPayload, RiskFacts
from services.analytics import (
    RISK_DRIVER_COUNT,
    compute_summary,
    score_risk,
    top_expense_drivers,
    weekly_series,
)
from services.forecast import forecast_weekly_net

logger = logging.getLogger("Cashflow.Grounding")


def build_grounding_payload(
    dataset_id: str,
    transactions: Sequence,
    horizon: int,
    as_of: Optional[date] = None,
) -> GroundingPayload:
    """Run the analytics pipeline and keep only the aggregates."""
    weekly = weekly_series(transactions)
    drivers = top_expense_drivers(transactions, RISK_DRIVER_COUNT)
    risk = score_risk(dataset_id, weekly, drivers)

    return GroundingPayload(
        dataset_id=dataset_id,
        summary=compute_summary(dataset_id, transactions, weekly),
        risk=RiskFacts(
            risk_score=risk.risk_score,
            negative_weeks_ratio=risk.negative_weeks_ratio,
            weekly_net_volatility=risk.weekly_net_volatility,
            reasons=risk.reasons,
        ),
        top_expense_drivers=drivers,
        forecast_weekly_net=forecast_weekly_net(weekly, horizon, as_of=as_of),
    )


def serialize_payload(payload: GroundingPayload) -> str:
    """Compact JSON in declaration order, byte-identical for identical facts."""
    return json.dumps(
        payload.model_dump(mode="json", by_alias=True),
        separators=(",", ":"),
        ensure_ascii=False,
    )


def payload_digest(serialized: str) -> str:
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
