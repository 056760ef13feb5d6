"""
Sensitivity mapping for SquatCount.

Turns the single user-facing speed/sensitivity scalar into the concrete
tuning parameters consumed by the repetition state machine.

Policy:
    - Time windows shrink linearly as sensitivity rises (faster reps allowed).
    - The band between the standing and squatting thresholds narrows toward
      its midpoint as sensitivity rises. Both squat entry and standing entry
      get easier together; neither threshold ever moves the other way.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from . import config


@dataclass(frozen=True)
class ChannelThresholds:
    """A pair of per-channel values (acceleration m/s², beta degrees)."""

    accel: float
    beta: float

    def as_dict(self) -> dict:
        return {"accel": self.accel, "beta": self.beta}


@dataclass(frozen=True)
class TuningParameters:
    """
    Detection parameters derived from one sensitivity value.

    Attributes:
        min_action_time: Shortest plausible squat phase (s)
        max_action_time: Longest squat/rise phase before it is abandoned (s)
        cooldown_time: Minimum dwell after a transition (s)
        standing: Values below which a channel indicates standing posture
        squatting: Values above which a channel indicates squatting posture
        standing_tolerance: Slack added to `standing` when confirming a rep
        min_change: Optional minimum movement since the last transition
    """

    min_action_time: float
    max_action_time: float
    cooldown_time: float
    standing: ChannelThresholds
    squatting: ChannelThresholds
    standing_tolerance: ChannelThresholds
    min_change: Optional[ChannelThresholds] = None
    sensitivity: Optional[float] = None

    def as_dict(self) -> dict:
        return {
            "sensitivity": self.sensitivity,
            "min_action_time_sec": self.min_action_time,
            "max_action_time_sec": self.max_action_time,
            "cooldown_time_sec": self.cooldown_time,
            "standing": self.standing.as_dict(),
            "squatting": self.squatting.as_dict(),
            "standing_tolerance": self.standing_tolerance.as_dict(),
            "min_change": None if self.min_change is None else self.min_change.as_dict(),
        }


def clamp(v, lo, hi):
    return lo if v < lo else hi if v > hi else v


def _lerp(endpoints: Tuple[float, float], t: float) -> float:
    start, end = endpoints
    return start + (end - start) * t


def normalize_sensitivity(
    sensitivity: float,
    value_range: Tuple[float, float] = config.SENSITIVITY_RANGE
) -> float:
    """Map a sensitivity value onto [0, 1], clamping out-of-range input."""
    lo, hi = value_range
    if not (math.isfinite(lo) and math.isfinite(hi)) or hi <= lo:
        raise ValueError(f"Invalid sensitivity range: {value_range}")
    try:
        s = float(sensitivity)
    except (TypeError, ValueError):
        raise ValueError(f"Sensitivity must be a number, got {sensitivity!r}")
    if not math.isfinite(s):
        raise ValueError(f"Sensitivity must be finite, got {sensitivity!r}")
    return (clamp(s, lo, hi) - lo) / (hi - lo)


def map_sensitivity(
    sensitivity: float,
    value_range: Tuple[float, float] = config.SENSITIVITY_RANGE,
    use_min_change: bool = True
) -> TuningParameters:
    """
    Compute the full parameter set for a sensitivity value.

    Args:
        sensitivity: User-facing scalar; clamped into value_range
        value_range: (min, max) of the control surface
        use_min_change: Include the minimum-movement requirement

    Returns:
        A new TuningParameters record

    Raises:
        ValueError: sensitivity is not a finite number
    """
    t = normalize_sensitivity(sensitivity, value_range)

    min_action = _lerp(config.MIN_ACTION_TIME_RANGE, t)
    max_action = max(min_action, _lerp(config.MAX_ACTION_TIME_RANGE, t))
    cooldown = _lerp(config.COOLDOWN_TIME_RANGE, t)

    band = _lerp(config.BAND_FACTOR_RANGE, t)

    # Midpoint and half-width of the hysteresis band per channel
    mid_a = (config.STANDING_ACCEL + config.SQUATTING_ACCEL) / 2.0
    half_a = (config.SQUATTING_ACCEL - config.STANDING_ACCEL) / 2.0
    mid_b = (config.STANDING_BETA + config.SQUATTING_BETA) / 2.0
    half_b = (config.SQUATTING_BETA - config.STANDING_BETA) / 2.0

    standing = ChannelThresholds(accel=mid_a - half_a * band, beta=mid_b - half_b * band)
    squatting = ChannelThresholds(accel=mid_a + half_a * band, beta=mid_b + half_b * band)

    gap_a = squatting.accel - standing.accel
    gap_b = squatting.beta - standing.beta
    tolerance = ChannelThresholds(
        accel=gap_a * config.STANDING_TOLERANCE_FRAC,
        beta=gap_b * config.STANDING_TOLERANCE_FRAC,
    )
    min_change = None
    if use_min_change:
        min_change = ChannelThresholds(
            accel=gap_a * config.MIN_CHANGE_FRAC,
            beta=gap_b * config.MIN_CHANGE_FRAC,
        )

    return TuningParameters(
        min_action_time=min_action,
        max_action_time=max_action,
        cooldown_time=cooldown,
        standing=standing,
        squatting=squatting,
        standing_tolerance=tolerance,
        min_change=min_change,
        sensitivity=float(clamp(float(sensitivity), *value_range)),
    )
