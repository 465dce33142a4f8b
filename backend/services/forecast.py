"""Forward projection of weekly net cashflow.

The projection is an exponentially weighted moving average of the historical
weekly net, held flat across the horizon:

    alpha = 2 / (min(N, 12) + 1)
    ema   = net[0];  ema = alpha * net[i] + (1 - alpha) * ema   for i >= 1

so one historical week projects that week's net and no history projects zero.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional, Sequence

from schemas import ForecastPoint, WeeklyPoint
from services.analytics import round2, week_start

EMA_WINDOW_CAP = 12


def smoothing_factor(weeks: int) -> float:
    return 2.0 / (min(weeks, EMA_WINDOW_CAP) + 1)


def ema(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    alpha = smoothing_factor(len(values))
    smoothed = values[0]
    for value in values[1:]:
        smoothed = alpha * value + (1 - alpha) * smoothed
    return smoothed


def forecast_weekly_net(
    weekly: Sequence[WeeklyPoint],
    horizon: int,
    as_of: Optional[date] = None,
) -> List[ForecastPoint]:
    """Project ``horizon`` future weeks, each dated 7 days after the previous.

    Without history the first point is the Monday after ``as_of`` (today by
    default).
    """
    if horizon < 1:
        raise ValueError(f"horizon must be at least 1, got {horizon}")

    if weekly:
        last = max(w.week_start for w in weekly)
        projected = round2(ema([w.net for w in sorted(weekly, key=lambda w: w.week_start)]))
    else:
        last = week_start(as_of or date.today())
        projected = 0.0

    return [
        ForecastPoint(week_start=last + timedelta(weeks=i), projected_net=projected)
        for i in range(1, horizon + 1)
    ]
