import math
from datetime import date

import pytest

from conftest import txn
from schemas import WeeklyPoint
from services.analytics import (
    NEGATIVE_WEEKS_REASON,
    NO_DATA_REASON,
    STABLE_REASON,
    VOLATILITY_REASON,
    compute_summary,
    round2,
    score_risk,
    top_expense_drivers,
    week_start,
    weekly_series,
)


def _weeks(*nets):
    start = date(2025, 1, 6)
    return [
        WeeklyPoint(week_start=date.fromordinal(start.toordinal() + 7 * i), income=max(n, 0), expense=max(-n, 0), net=n)
        for i, n in enumerate(nets)
    ]


# ─── Weekly Aggregator ────────────────────────────────────────────────────────

def test_week_start_is_monday_on_or_before():
    assert week_start(date(2025, 1, 6)) == date(2025, 1, 6)   # Monday
    assert week_start(date(2025, 1, 12)) == date(2025, 1, 6)  # Sunday
    assert week_start(date(2025, 1, 1)) == date(2024, 12, 30)  # crosses year


def test_weekly_series_example(example_transactions):
    weekly = weekly_series(example_transactions)

    assert [(w.week_start, w.income, w.expense, w.net) for w in weekly] == [
        (date(2025, 1, 6), 1000.0, 400.0, 600.0),
        (date(2025, 1, 13), 0.0, 200.0, -200.0),
    ]


def test_weekly_series_all_mondays_sorted_without_gaps():
    txns = [
        txn("2025-03-30", 50, "INCOME"),
        txn("2025-02-05", -20, "EXPENSE", "Food"),
        txn("2025-02-09", 10, "INCOME"),
        txn("2025-03-03", -5, "EXPENSE"),
    ]
    weekly = weekly_series(txns)

    assert all(w.week_start.weekday() == 0 for w in weekly)
    assert [w.week_start for w in weekly] == [date(2025, 2, 3), date(2025, 3, 3), date(2025, 3, 24)]


def test_weekly_series_empty():
    assert weekly_series([]) == []


def test_unknown_type_keeps_week_but_adds_nothing():
    weekly = weekly_series([txn("2025-02-04", 999, "TRANSFER")])

    assert len(weekly) == 1
    assert (weekly[0].income, weekly[0].expense, weekly[0].net) == (0.0, 0.0, 0.0)


def test_type_matching_is_case_insensitive():
    weekly = weekly_series([txn("2025-02-04", 100, "income"), txn("2025-02-04", -30, "Expense")])
    assert weekly[0].net == 70.0


def test_expense_sign_does_not_matter():
    weekly = weekly_series([txn("2025-02-04", 30, "EXPENSE"), txn("2025-02-05", -30, "EXPENSE")])
    assert weekly[0].expense == 60.0


def test_rounding_is_half_up():
    assert round2(2.675) == 2.68
    assert round2(0.125) == 0.13
    assert round2(-0.125) == -0.13
    weekly = weekly_series([txn("2025-02-04", 10.005, "INCOME")])
    assert weekly[0].income == 10.01


def test_overflowing_sums_pass_through_without_raising():
    huge = [txn("2025-01-06", 1e308, "INCOME"), txn("2025-01-07", 1e308, "INCOME")]

    weekly = weekly_series(huge)
    assert math.isinf(weekly[0].income)
    assert math.isinf(compute_summary("ds", huge).total_income)
    assert 0 <= score_risk("ds", weekly).risk_score <= 100


# ─── Summary Calculator ───────────────────────────────────────────────────────

def test_summary_example(example_transactions):
    summary = compute_summary("ds-1", example_transactions)

    assert summary.dataset_id == "ds-1"
    assert summary.total_income == 1000.0
    assert summary.total_expense == 600.0
    assert summary.net_cashflow == 400.0
    assert summary.avg_weekly_net == 200.0
    assert summary.avg_weekly_expense == 300.0


def test_summary_net_matches_totals():
    txns = [
        txn("2025-01-06", 1234.56, "INCOME"),
        txn("2025-01-07", -99.99, "EXPENSE", "Food"),
        txn("2025-01-15", -0.01, "EXPENSE"),
        txn("2025-01-20", 17.3, "INCOME"),
    ]
    summary = compute_summary("ds", txns)
    assert abs(summary.total_income - summary.total_expense - summary.net_cashflow) <= 0.01


def test_summary_empty_is_all_zero():
    summary = compute_summary("empty", [])
    assert (
        summary.total_income,
        summary.total_expense,
        summary.net_cashflow,
        summary.avg_weekly_net,
        summary.avg_weekly_expense,
    ) == (0.0, 0.0, 0.0, 0.0, 0.0)


# ─── Expense Driver Ranker ────────────────────────────────────────────────────

@pytest.fixture
def spending():
    return [
        txn("2025-01-06", 5000, "INCOME", "Salary"),
        txn("2025-01-07", -500, "EXPENSE", "Rent"),
        txn("2025-01-08", -120, "EXPENSE", "Travel"),
        txn("2025-01-09", -80, "EXPENSE", "Travel"),
        txn("2025-01-10", -200, "EXPENSE", "Food"),
        txn("2025-01-11", -50, "EXPENSE", ""),
        txn("2025-01-12", -30, "EXPENSE", "   "),
        txn("2025-01-13", -10, "EXPENSE", None),
    ]


def test_drivers_ranked_with_name_tie_break(spending):
    drivers = top_expense_drivers(spending, 3)
    assert [(d.category, d.total) for d in drivers] == [("Rent", 500.0), ("Food", 200.0), ("Travel", 200.0)]


def test_blank_categories_are_uncategorized(spending):
    drivers = top_expense_drivers(spending, 10)
    assert drivers[-1].category == "uncategorized"
    assert drivers[-1].total == 90.0


def test_drivers_bounds(spending):
    total_expense = compute_summary("ds", spending).total_expense
    for limit in (1, 2, 4, 10):
        drivers = top_expense_drivers(spending, limit)
        assert len(drivers) <= min(limit, 4)
        totals = [d.total for d in drivers]
        assert totals == sorted(totals, reverse=True)
        assert sum(totals) <= total_expense


def test_drivers_ignore_income_and_handle_empty():
    assert top_expense_drivers([txn("2025-01-06", 10, "INCOME", "Salary")], 5) == []
    assert top_expense_drivers([], 5) == []
    assert top_expense_drivers([txn("2025-01-06", -10, "EXPENSE", "Food")], 0) == []


# ─── Risk Scorer ──────────────────────────────────────────────────────────────

def test_risk_example(example_transactions):
    weekly = weekly_series(example_transactions)
    risk = score_risk("ds", weekly, top_expense_drivers(example_transactions))

    assert risk.negative_weeks_ratio == 0.5
    assert risk.weekly_net_volatility == 400.0
    # 30 from the negative ratio, volatility part capped at 40
    assert risk.risk_score == 70
    assert risk.reasons == [NEGATIVE_WEEKS_REASON, VOLATILITY_REASON]
    assert [d.category for d in risk.top_expense_drivers] == ["Rent"]


def test_risk_empty_series():
    risk = score_risk("ds", [])
    assert risk.risk_score == 0
    assert risk.negative_weeks_ratio == 0.0
    assert risk.weekly_net_volatility == 0.0
    assert risk.reasons == [NO_DATA_REASON]
    assert risk.top_expense_drivers == []


def test_risk_all_positive_is_stable():
    risk = score_risk("ds", _weeks(100, 100, 100))
    assert risk.risk_score == 0
    assert risk.reasons == [STABLE_REASON]


def test_risk_all_negative():
    risk = score_risk("ds", _weeks(-100, -100))
    assert risk.risk_score == 60
    assert risk.negative_weeks_ratio == 1.0
    assert risk.reasons == [NEGATIVE_WEEKS_REASON]


def test_risk_single_week():
    assert score_risk("ds", _weeks(500)).risk_score == 0
    assert score_risk("ds", _weeks(-50)).risk_score == 60


def test_risk_score_hits_upper_bound():
    risk = score_risk("ds", _weeks(-1000, -1))
    assert risk.risk_score == 100


@pytest.mark.parametrize("nets", [(), (0,), (0, 0, 0), (5, -5), (1e6, -1e6, 3), (1e300, -1e300), (-1, -2, -3, -4)])
def test_risk_score_always_in_range(nets):
    risk = score_risk("ds", _weeks(*nets))
    assert 0 <= risk.risk_score <= 100
    assert 0.0 <= risk.negative_weeks_ratio <= 1.0


def test_risk_attaches_at_most_five_drivers(spending):
    drivers = top_expense_drivers(spending, 10)
    risk = score_risk("ds", weekly_series(spending), drivers)
    assert len(risk.top_expense_drivers) <= 5
