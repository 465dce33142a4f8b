"""
Cashflow analytics — deterministic facts derived from a dataset's transactions.

Computes:
1. Weekly series (Monday-start buckets of income / expense / net)
2. Summary totals and weekly averages
3. Ranked expense drivers by category
4. Composite risk score (negative-week ratio + volatility)

All functions are pure: they take a snapshot of transactions (anything exposing
``date``, ``amount``, ``type`` and ``category``) and never raise on empty or
degenerate input.
"""
from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Sequence

from models import TransactionType
from schemas import DriverPoint, RiskResponse, SummaryResponse, WeeklyPoint

UNCATEGORIZED = "uncategorized"

NO_DATA_REASON = "No data"
NEGATIVE_WEEKS_REASON = "High fraction of weeks with negative net cashflow"
VOLATILITY_REASON = "High volatility in weekly net cashflow"
STABLE_REASON = "Stable cashflow pattern"

NEGATIVE_RATIO_THRESHOLD = 0.4
VOLATILITY_FACTOR = 1.2
RISK_DRIVER_COUNT = 5


# ─── Helpers ──────────────────────────────────────────────────────────────────

def round2(value: float) -> float:
    """Round half-up to cents (``round()`` would round half to even).

    Non-finite values (sums that overflowed) are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def week_start(day: date) -> date:
    """Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def _type_of(txn) -> str:
    return (txn.type or "").strip().upper()


def _is_income(txn) -> bool:
    return _type_of(txn) == TransactionType.INCOME.value


def _is_expense(txn) -> bool:
    return _type_of(txn) == TransactionType.EXPENSE.value


def _category_of(txn) -> str:
    category = (txn.category or "").strip()
    return category or UNCATEGORIZED


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# ─── Weekly Aggregator ────────────────────────────────────────────────────────

def weekly_series(transactions: Iterable) -> List[WeeklyPoint]:
    """Bucket transactions into Monday-start weeks, ascending.

    Weeks without transactions are absent. A transaction with an unknown type
    still places its week in the series but adds to neither sum.
    """
    weeks = defaultdict(lambda: {"income": 0.0, "expense": 0.0})

    for t in transactions:
        bucket = weeks[week_start(t.date)]
        if _is_income(t):
            bucket["income"] += t.amount or 0
        elif _is_expense(t):
            bucket["expense"] += abs(t.amount or 0)

    points = []
    for ws in sorted(weeks):
        income = weeks[ws]["income"]
        expense = weeks[ws]["expense"]
        points.append(WeeklyPoint(
            week_start=ws,
            income=round2(income),
            expense=round2(expense),
            net=round2(income - expense),
        ))
    return points


# ─── Summary Calculator ───────────────────────────────────────────────────────

def compute_summary(
    dataset_id: str,
    transactions: Sequence,
    weekly: Sequence[WeeklyPoint] | None = None,
) -> SummaryResponse:
    if weekly is None:
        weekly = weekly_series(transactions)

    total_income = sum(t.amount or 0 for t in transactions if _is_income(t))
    total_expense = sum(abs(t.amount or 0) for t in transactions if _is_expense(t))

    return SummaryResponse(
        dataset_id=dataset_id,
        total_income=round2(total_income),
        total_expense=round2(total_expense),
        net_cashflow=round2(total_income - total_expense),
        avg_weekly_net=round2(_mean([w.net for w in weekly])),
        avg_weekly_expense=round2(_mean([w.expense for w in weekly])),
    )


# ─── Expense Driver Ranker ────────────────────────────────────────────────────

def top_expense_drivers(transactions: Iterable, limit: int = RISK_DRIVER_COUNT) -> List[DriverPoint]:
    """Expense categories by total magnitude, largest first.

    Equal totals are ordered by category name so the ranking is stable
    across calls.
    """
    if limit <= 0:
        return []

    totals = defaultdict(float)
    for t in transactions:
        if _is_expense(t):
            totals[_category_of(t)] += abs(t.amount or 0)

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [DriverPoint(category=cat, total=round2(total)) for cat, total in ranked[:limit]]


# ─── Risk Scorer ──────────────────────────────────────────────────────────────

def score_risk(
    dataset_id: str,
    weekly: Sequence[WeeklyPoint],
    drivers: Sequence[DriverPoint] = (),
) -> RiskResponse:
    """Composite 0–100 risk score from the weekly net series.

    Up to 60 points come from the share of negative weeks and up to 40 from
    volatility relative to the mean weekly net.
    """
    if not weekly:
        return RiskResponse(
            dataset_id=dataset_id,
            risk_score=0,
            negative_weeks_ratio=0.0,
            weekly_net_volatility=0.0,
            reasons=[NO_DATA_REASON],
            top_expense_drivers=[],
        )

    nets = [w.net for w in weekly]
    negative_ratio = sum(1 for n in nets if n < 0) / len(nets)

    mean = _mean(nets)
    # `**` raises OverflowError on huge floats where `*` gives inf
    variance = _mean([(n - mean) * (n - mean) for n in nets])
    volatility = math.sqrt(variance)

    score = round_half_up(negative_ratio * 60)
    relative = volatility / (abs(mean) + 1)
    if math.isfinite(relative):
        # capping before rounding gives the same result and keeps Decimal in range
        score += min(40, round_half_up(min(relative * 40, 40.0)))
    else:
        score += 40
    score = max(0, min(100, score))

    reasons = []
    if negative_ratio > NEGATIVE_RATIO_THRESHOLD:
        reasons.append(NEGATIVE_WEEKS_REASON)
    if volatility > abs(mean) * VOLATILITY_FACTOR:
        reasons.append(VOLATILITY_REASON)
    if not reasons:
        reasons.append(STABLE_REASON)

    return RiskResponse(
        dataset_id=dataset_id,
        risk_score=score,
        negative_weeks_ratio=round2(negative_ratio),
        weekly_net_volatility=round2(volatility),
        reasons=reasons,
        top_expense_drivers=list(drivers)[:RISK_DRIVER_COUNT],
    )
