"""
Transition guards for the repetition state machine.

Each guard decides whether the posture signal supports one transition. A
guard evaluates both channels separately and folds the per-channel votes
with a single combinator, so the AND/OR policy is applied the same way to
every transition and can be swapped without touching the state machine.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from .sensitivity import TuningParameters


@dataclass(frozen=True)
class Reading:
    """Smoothed acceleration (m/s²) and tilt (degrees) at one instant."""

    accel: float
    beta: float


Combinator = Callable[[Iterable[bool]], bool]
Guard = Callable[[Reading, Optional[Reading], TuningParameters], bool]

COMBINATORS: Dict[str, Combinator] = {
    "all": all,  # both channels must agree
    "and": all,
    "any": any,  # either channel suffices
    "or": any,
}


def get_combinator(name: str) -> Combinator:
    try:
        return COMBINATORS[name.strip().lower()]
    except (AttributeError, KeyError):
        raise ValueError(f"Unknown combinator {name!r}; expected one of {sorted(COMBINATORS)}")


def _moved_up(value: float, anchor: Optional[float], min_change: Optional[float]) -> bool:
    if anchor is None or min_change is None:
        return True
    return value - anchor >= min_change


def _moved_down(value: float, anchor: Optional[float], min_change: Optional[float]) -> bool:
    if anchor is None or min_change is None:
        return True
    return anchor - value >= min_change


def squat_entry_guard(combine: Combinator) -> Guard:
    """Downward motion: channels rise above the squatting thresholds."""

    def guard(r: Reading, anchor: Optional[Reading], p: TuningParameters) -> bool:
        mc = p.min_change
        votes = (
            r.accel > p.squatting.accel and _moved_up(
                r.accel, anchor and anchor.accel, mc and mc.accel),
            r.beta > p.squatting.beta and _moved_up(
                r.beta, anchor and anchor.beta, mc and mc.beta),
        )
        return combine(votes)

    return guard


def rise_guard(combine: Combinator) -> Guard:
    """Upward motion: channels fall below the standing thresholds."""

    def guard(r: Reading, anchor: Optional[Reading], p: TuningParameters) -> bool:
        mc = p.min_change
        votes = (
            r.accel < p.standing.accel and _moved_down(
                r.accel, anchor and anchor.accel, mc and mc.accel),
            r.beta < p.standing.beta and _moved_down(
                r.beta, anchor and anchor.beta, mc and mc.beta),
        )
        return combine(votes)

    return guard


def stand_confirm_guard(combine: Combinator) -> Guard:
    """Return to standing: channels within tolerance of the standing thresholds."""

    def guard(r: Reading, anchor: Optional[Reading], p: TuningParameters) -> bool:
        votes = (
            r.accel < p.standing.accel + p.standing_tolerance.accel,
            r.beta < p.standing.beta + p.standing_tolerance.beta,
        )
        return combine(votes)

    return guard


@dataclass(frozen=True)
class TransitionGuards:
    """The three posture checks used by the state machine."""

    squat_entry: Guard
    rise: Guard
    stand_confirm: Guard
    name: str = "custom"


def make_guards(combinator: str = "all") -> TransitionGuards:
    """
    Build guards that share one combinator.

    Args:
        combinator: "all"/"and" (higher precision) or "any"/"or" (higher recall)
    """
    combine = get_combinator(combinator)
    return TransitionGuards(
        squat_entry=squat_entry_guard(combine),
        rise=rise_guard(combine),
        stand_confirm=stand_confirm_guard(combine),
        name="all" if combine is all else "any",
    )
