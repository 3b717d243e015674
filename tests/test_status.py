"""Tests for progress status classification."""

from __future__ import annotations

import pytest

from prepcoach.engine.models import GoalType, Status, StatusReason, WeeklyAverage
from prepcoach.engine.status import Classification, classify_progress, two_week_rate


def weeks(*avgs: float) -> list[WeeklyAverage]:
    """Weekly averages, most recent first."""
    return [WeeklyAverage(week=i, avg_weight=w) for i, w in enumerate(avgs)]


TWO_WEEKS = weeks(80.0, 80.1)
FLAT_CUT = weeks(80.0, 80.05, 80.1)
FLAT_BULK = weeks(80.1, 80.05, 80.0)


class TestTwoWeekRate:
    """Tests for the plateau confirmation rate."""

    def test_needs_three_points(self) -> None:
        assert two_week_rate(TWO_WEEKS) is None

    def test_average_over_two_weeks(self) -> None:
        rate = two_week_rate(weeks(80.0, 80.5, 81.0))
        assert rate == pytest.approx((80.0 - 81.0) / 81.0 * 100 / 2)


class TestClassifyCut:
    """Tests for cut classification."""

    def test_too_fast(self) -> None:
        result = classify_progress(GoalType.CUT, TWO_WEEKS, -1.2)
        assert result.status == Status.OFF_TRACK
        assert result.reason == StatusReason.TOO_FAST

    def test_boundary_is_too_fast(self) -> None:
        assert classify_progress(GoalType.CUT, TWO_WEEKS, -1.0).reason == StatusReason.TOO_FAST

    def test_in_range(self) -> None:
        result = classify_progress(GoalType.CUT, TWO_WEEKS, -0.5)
        assert result.status == Status.ON_TRACK
        assert result.reason == StatusReason.IN_RANGE

    def test_gaining_is_wrong_direction(self) -> None:
        result = classify_progress(GoalType.CUT, TWO_WEEKS, 0.3)
        assert result.status == Status.OFF_TRACK
        assert result.reason == StatusReason.WRONG_DIRECTION

    def test_slow_with_two_weeks_is_monitoring(self) -> None:
        result = classify_progress(GoalType.CUT, TWO_WEEKS, -0.1)
        assert result.status == Status.ON_TRACK
        assert result.reason == StatusReason.MONITORING

    def test_slow_for_two_weeks_is_plateau(self) -> None:
        result = classify_progress(GoalType.CUT, FLAT_CUT, -0.1)
        assert result.status == Status.PLATEAU
        assert result.reason == StatusReason.STALLED

    def test_recent_slowdown_not_yet_plateau(self) -> None:
        """A fast loss two weeks back keeps the client in monitoring."""
        result = classify_progress(GoalType.CUT, weeks(80.0, 80.1, 81.0), -0.1)
        assert result.reason == StatusReason.MONITORING


class TestClassifyBulk:
    """Tests for bulk classification."""

    def test_too_fast(self) -> None:
        result = classify_progress(GoalType.BULK, TWO_WEEKS, 0.6)
        assert result.status == Status.OFF_TRACK
        assert result.reason == StatusReason.TOO_FAST

    def test_upper_boundary_in_range(self) -> None:
        assert classify_progress(GoalType.BULK, TWO_WEEKS, 0.5).reason == StatusReason.IN_RANGE

    def test_losing_is_wrong_direction(self) -> None:
        result = classify_progress(GoalType.BULK, TWO_WEEKS, -0.2)
        assert result.reason == StatusReason.WRONG_DIRECTION

    def test_in_range(self) -> None:
        result = classify_progress(GoalType.BULK, TWO_WEEKS, 0.3)
        assert result.status == Status.ON_TRACK

    def test_plateau(self) -> None:
        result = classify_progress(GoalType.BULK, FLAT_BULK, 0.05)
        assert result.status == Status.PLATEAU

    def test_monitoring(self) -> None:
        result = classify_progress(GoalType.BULK, TWO_WEEKS, 0.05)
        assert result.reason == StatusReason.MONITORING


class TestClassifyMaintain:
    """Tests for maintenance classification."""

    @pytest.mark.parametrize("rate", [0.0, 0.2, -0.25, 0.25])
    def test_within_band(self, rate: float) -> None:
        result = classify_progress(GoalType.MAINTAIN, TWO_WEEKS, rate)
        assert result.status == Status.ON_TRACK

    @pytest.mark.parametrize("rate", [0.3, -0.4])
    def test_drifting(self, rate: float) -> None:
        result = classify_progress(GoalType.MAINTAIN, TWO_WEEKS, rate)
        assert result.status == Status.OFF_TRACK
        assert result.reason == StatusReason.DRIFTING


class TestClassification:
    """Tests for Classification presentation."""

    def test_insufficient_data(self) -> None:
        result = classify_progress(GoalType.CUT, weeks(80.0), 0.0)
        assert result.status == Status.INSUFFICIENT_DATA
        assert result.emoji == "📊"
        assert not result.actionable

    @pytest.mark.parametrize(
        "status,actionable",
        [
            (Status.ON_TRACK, False),
            (Status.PLATEAU, True),
            (Status.OFF_TRACK, True),
        ],
    )
    def test_actionable(self, status: Status, actionable: bool) -> None:
        result = Classification(status, StatusReason.IN_RANGE, "msg")
        assert result.actionable is actionable

    def test_label(self) -> None:
        assert Classification(Status.PLATEAU, StatusReason.STALLED, "").label == "Plateau"
