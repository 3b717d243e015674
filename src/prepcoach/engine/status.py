"""Progress status classification.

Rates are expressed as % of body weight per week, with bands taken from
sports-nutrition guidance for physique athletes:

- cut: 0.3-1.0% BW/week loss. Faster risks lean mass; slower is a stall.
- bulk: 0.1-0.5% BW/week gain. Faster is mostly fat; slower is a stall.
- maintain: within ±0.25% BW/week.

A near-zero rate is only called a plateau once it has held for two weeks
(three weekly points). With fewer points the client is monitored instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from prepcoach.engine.models import GoalType, Status, StatusReason, WeeklyAverage

# % body weight per week
CUT_TOO_FAST_RATE = -1.0
CUT_STALL_RATE = -0.3
BULK_STALL_RATE = 0.1
BULK_TOO_FAST_RATE = 0.5
MAINTAIN_BAND = 0.25

STATUS_PRESENTATION = {
    Status.INSUFFICIENT_DATA: ("📊", "Insufficient data"),
    Status.ON_TRACK: ("🟢", "On track"),
    Status.PLATEAU: ("🟡", "Plateau"),
    Status.OFF_TRACK: ("🔴", "Off track"),
}

INSUFFICIENT_DATA_MESSAGE = (
    "At least 2 weeks of weight data are needed before progress can be "
    "analysed. Keep logging body weight."
)


@dataclass(frozen=True)
class Classification:
    """Result of classifying the current trajectory."""

    status: Status
    reason: StatusReason
    message: str
    rate_percent: Optional[float] = None

    @property
    def emoji(self) -> str:
        return STATUS_PRESENTATION[self.status][0]

    @property
    def label(self) -> str:
        return STATUS_PRESENTATION[self.status][1]

    @property
    def actionable(self) -> bool:
        """True when the trajectory calls for a target change."""
        return self.status in (Status.PLATEAU, Status.OFF_TRACK)


def insufficient_data(message: str = INSUFFICIENT_DATA_MESSAGE) -> Classification:
    return Classification(Status.INSUFFICIENT_DATA, StatusReason.NOT_ENOUGH_WEEKS, message)


def two_week_rate(weekly_weights: Sequence[WeeklyAverage]) -> Optional[float]:
    """Average % BW/week change across the latest point and the point two back.

    Returns None with fewer than three weekly points.
    """
    ordered = sorted(weekly_weights, key=lambda w: w.week)
    if len(ordered) < 3:
        return None
    latest = ordered[0].avg_weight
    older = ordered[2].avg_weight
    return (latest - older) / older * 100 / 2


def classify_progress(
    goal_type: GoalType,
    weekly_weights: Sequence[WeeklyAverage],
    rate_percent: float,
) -> Classification:
    """
    Label the trajectory relative to the goal.

    Args:
        goal_type: cut, bulk or maintain
        weekly_weights: Weekly averages (at least two)
        rate_percent: Signed weekly change as % of body weight

    Returns:
        Classification with status, reason and a human message
    """
    if len(weekly_weights) < 2:
        return insufficient_data()

    if goal_type == GoalType.CUT:
        return _classify_cut(weekly_weights, rate_percent)
    if goal_type == GoalType.BULK:
        return _classify_bulk(weekly_weights, rate_percent)
    return _classify_maintain(rate_percent)


def _classify_cut(weekly_weights: Sequence[WeeklyAverage], rate: float) -> Classification:
    if rate <= CUT_TOO_FAST_RATE:
        return Classification(
            Status.OFF_TRACK,
            StatusReason.TOO_FAST,
            f"Weight is dropping {rate:.2f}%/week, beyond the safe limit of "
            f"{CUT_TOO_FAST_RATE:.1f}%/week. Raise calories to protect lean mass.",
            rate,
        )

    if rate > 0:
        return Classification(
            Status.OFF_TRACK,
            StatusReason.WRONG_DIRECTION,
            f"Weight is going up (+{rate:.2f}%/week) during a cut. Calories need to come down.",
            rate,
        )

    if rate >= CUT_STALL_RATE:
        confirm = two_week_rate(weekly_weights)
        if confirm is not None and confirm >= CUT_STALL_RATE:
            return Classification(
                Status.PLATEAU,
                StatusReason.STALLED,
                f"Weight has barely moved for 2 weeks ({rate:.2f}%/week). "
                "Lower calories slightly to break the plateau.",
                rate,
            )
        return Classification(
            Status.ON_TRACK,
            StatusReason.MONITORING,
            f"Weight change is {rate:.2f}%/week. Too little data to call a plateau; "
            "check again next week.",
            rate,
        )

    return Classification(
        Status.ON_TRACK,
        StatusReason.IN_RANGE,
        f"Weight is dropping {rate:.2f}%/week, inside the target range "
        f"({CUT_TOO_FAST_RATE:.1f}% to {CUT_STALL_RATE:.1f}%). Keep the current plan.",
        rate,
    )


def _classify_bulk(weekly_weights: Sequence[WeeklyAverage], rate: float) -> Classification:
    if rate > BULK_TOO_FAST_RATE:
        return Classification(
            Status.OFF_TRACK,
            StatusReason.TOO_FAST,
            f"Weight is rising +{rate:.2f}%/week, above the +{BULK_TOO_FAST_RATE:.1f}%/week "
            "ceiling. Most of the extra is likely fat; trim calories.",
            rate,
        )

    if rate < 0:
        return Classification(
            Status.OFF_TRACK,
            StatusReason.WRONG_DIRECTION,
            f"Weight is dropping ({rate:.2f}%/week) during a bulk. The surplus is too small.",
            rate,
        )

    if rate < BULK_STALL_RATE:
        confirm = two_week_rate(weekly_weights)
        if confirm is not None and confirm < BULK_STALL_RATE:
            return Classification(
                Status.PLATEAU,
                StatusReason.STALLED,
                f"Weight gain has stalled for 2 weeks (+{rate:.2f}%/week). "
                "Raise calories to keep progressing.",
                rate,
            )
        return Classification(
            Status.ON_TRACK,
            StatusReason.MONITORING,
            f"Weight change is +{rate:.2f}%/week. Too little data to call a plateau; "
            "check again next week.",
            rate,
        )

    return Classification(
        Status.ON_TRACK,
        StatusReason.IN_RANGE,
        f"Weight is rising +{rate:.2f}%/week, inside the target range "
        f"(+{BULK_STALL_RATE:.1f}% to +{BULK_TOO_FAST_RATE:.1f}%).",
        rate,
    )


def _classify_maintain(rate: float) -> Classification:
    if abs(rate) <= MAINTAIN_BAND:
        return Classification(
            Status.ON_TRACK,
            StatusReason.IN_RANGE,
            f"Weight is stable ({rate:+.2f}%/week).",
            rate,
        )
    direction = "up" if rate > 0 else "down"
    return Classification(
        Status.OFF_TRACK,
        StatusReason.DRIFTING,
        f"Weight is drifting {direction} ({rate:+.2f}%/week) outside the "
        f"±{MAINTAIN_BAND:.2f}%/week maintenance band.",
        rate,
    )
