"""Weight trend analysis shared by the engine and trajectory displays.

Raw weight samples are irregular: some days have several readings, some
have none. Nothing here interpolates. Missing days are simply absent.

Two series are derived from the samples:

- weekly averages over trailing, non-overlapping 7-day windows anchored on
  "today" (week 0 = the 7 days ending today). Weeks without samples are
  dropped, so the series may be non-contiguous.
- a daily 7-day trailing moving average, used when a smoother,
  shorter-horizon projection is wanted (trajectory charts, competition-day
  prediction).

Both are fitted with ordinary least squares against ordinal index position,
not elapsed time. A gap in the weekly series therefore counts as one step.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence

import numpy as np

from prepcoach.engine.errors import InsufficientDataError
from prepcoach.engine.models import WeeklyAverage, WeightSample

DAYS_PER_WEEK = 7
DEFAULT_WEEKS = 4
DEFAULT_MA_WINDOW = 7
DEFAULT_MA_POINTS = 14


@dataclass(frozen=True)
class TrendFit:
    """Least-squares line over an ordinally indexed series."""

    slope: float
    intercept: float
    count: int

    def fitted(self, index: float) -> float:
        """Fitted value at an index position (0 = oldest point)."""
        return self.intercept + self.slope * index

    @property
    def latest(self) -> float:
        return self.fitted(self.count - 1)

    def predict(self, steps_ahead: float) -> float:
        """Extrapolate ``steps_ahead`` index steps past the last point."""
        return self.fitted(self.count - 1 + steps_ahead)


@dataclass(frozen=True)
class Projection:
    """A fitted trend anchored to a calendar date.

    Attributes:
        fit: Underlying least-squares fit
        anchor: Date corresponding to the last fitted point
        step_days: Days represented by one index step (7 weekly, 1 daily)
    """

    fit: TrendFit
    anchor: date
    step_days: int

    def weight_on(self, when: date) -> float:
        """Projected weight on a given date."""
        return self.fit.predict((when - self.anchor).days / self.step_days)


def fit_trend(values: Sequence[float]) -> TrendFit:
    """Fit an OLS line using index position as the independent variable.

    Args:
        values: Series in chronological order (oldest first)

    Returns:
        TrendFit with slope in units per index step

    Raises:
        InsufficientDataError: If fewer than two values are given
    """
    if len(values) < 2:
        raise InsufficientDataError(f"need at least 2 points to fit a trend, got {len(values)}")

    x = np.arange(len(values), dtype=float)
    y = np.asarray(values, dtype=float)
    slope, intercept = np.polyfit(x, y, 1)
    return TrendFit(slope=float(slope), intercept=float(intercept), count=len(values))


def weekly_averages(
    samples: Sequence[WeightSample],
    today: date,
    weeks: int = DEFAULT_WEEKS,
) -> list[WeeklyAverage]:
    """Bucket samples into trailing 7-day windows and average each one.

    Week ``w`` covers ``today - 7w - 6`` through ``today - 7w`` inclusive.
    Samples after ``today`` are ignored.

    Returns:
        Non-empty weeks only, most recent first, averages rounded to 0.01 kg
    """
    averages = []
    for week in range(weeks):
        end = today - timedelta(days=week * DAYS_PER_WEEK)
        start = end - timedelta(days=DAYS_PER_WEEK - 1)
        in_week = [s.weight for s in samples if start <= s.date <= end]
        if in_week:
            averages.append(
                WeeklyAverage(week=week, avg_weight=round(float(np.mean(in_week)), 2))
            )
    return averages


def weekly_trend(weekly_weights: Sequence[WeeklyAverage]) -> TrendFit:
    """Fit the weekly series; the slope is the signed kg/week rate."""
    ordered = sorted(weekly_weights, key=lambda w: w.week, reverse=True)
    return fit_trend([w.avg_weight for w in ordered])


def percent_rate(fit: TrendFit) -> float:
    """Express a weekly slope as % of body weight per week.

    The reference weight is the fitted value one step before the latest,
    which for two points is exactly the previous week's average.
    """
    reference = fit.fitted(fit.count - 2)
    return fit.slope / reference * 100


def moving_average_series(
    samples: Sequence[WeightSample],
    window: int = DEFAULT_MA_WINDOW,
    points: Optional[int] = DEFAULT_MA_POINTS,
) -> list[tuple[date, float]]:
    """Compute a daily trailing moving average of the samples.

    One value per calendar day from the first to the last sample, averaging
    the samples in the ``window`` days ending that day. Days whose window
    holds no sample are skipped rather than filled.

    Args:
        samples: Weight samples in any order
        window: Moving-average window in days
        points: Keep only the most recent N values (None keeps all)

    Returns:
        List of (day, average) tuples in chronological order
    """
    if not samples:
        return []

    ordered = sorted(samples, key=lambda s: s.date)
    series: list[tuple[date, float]] = []
    day = ordered[0].date
    last = ordered[-1].date
    while day <= last:
        start = day - timedelta(days=window - 1)
        in_window = [s.weight for s in ordered if start <= s.date <= day]
        if in_window:
            series.append((day, float(np.mean(in_window))))
        day += timedelta(days=1)

    if points is not None:
        series = series[-points:]
    return series


def build_projection(
    weekly_weights: Sequence[WeeklyAverage],
    samples: Sequence[WeightSample],
    today: date,
    window: int = DEFAULT_MA_WINDOW,
    points: int = DEFAULT_MA_POINTS,
) -> Optional[Projection]:
    """Pick the best available projection.

    Prefers the daily moving-average fit when raw samples give at least two
    points, otherwise falls back to the weekly fit anchored on ``today``.
    Returns None when neither series has two points.
    """
    series = moving_average_series(
        [s for s in samples if s.date <= today], window=window, points=points
    )
    if len(series) >= 2:
        fit = fit_trend([value for _, value in series])
        return Projection(fit=fit, anchor=series[-1][0], step_days=1)

    if len(weekly_weights) >= 2:
        return Projection(fit=weekly_trend(weekly_weights), anchor=today, step_days=DAYS_PER_WEEK)

    return None


def project_trajectory(
    samples: Sequence[WeightSample],
    days_ahead: int,
    window: int = DEFAULT_MA_WINDOW,
    points: int = DEFAULT_MA_POINTS,
) -> list[tuple[date, float]]:
    """Projected daily weights for a trajectory chart.

    Returns one (day, weight) pair for each of the ``days_ahead`` days after
    the last sample, or an empty list when there is too little data.
    """
    series = moving_average_series(samples, window=window, points=points)
    if len(series) < 2 or days_ahead <= 0:
        return []

    projection = Projection(
        fit=fit_trend([value for _, value in series]),
        anchor=series[-1][0],
        step_days=1,
    )
    trajectory = []
    for offset in range(1, days_ahead + 1):
        day = projection.anchor + timedelta(days=offset)
        trajectory.append((day, projection.weight_on(day)))
    return trajectory
