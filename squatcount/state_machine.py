"""
Repetition state machine for SquatCount.

Consumes smoothed (acceleration, tilt) pairs plus a monotonic timestamp and
walks STANDING -> SQUATTING -> RISING -> STANDING. The RISING -> STANDING
step is the "repetition completed" event.

Time guards:
    - cooldown_time after entering STANDING or RISING before leaving again
    - min_action_time in SQUATTING before a rise is accepted
    - max_action_time in SQUATTING/RISING before the attempt is abandoned
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .guards import Reading, TransitionGuards, make_guards
from .sensitivity import TuningParameters

logger = logging.getLogger(__name__)

STATE_STANDING = "STANDING"
STATE_SQUATTING = "SQUATTING"
STATE_RISING = "RISING"


@dataclass(frozen=True)
class Transition:
    """One state change produced by RepetitionStateMachine.update()."""

    from_state: str
    to_state: str
    t: float
    completed: bool = False  # RISING -> STANDING, counts as a rep
    abandoned: bool = False  # timed out, not counted


def _finite(*values) -> bool:
    for v in values:
        if v is None or isinstance(v, bool):
            return False
        try:
            if not math.isfinite(v):
                return False
        except TypeError:
            return False
    return True


class RepetitionStateMachine:
    """
    Squat/stand cycle detector.

    Usage:
        machine = RepetitionStateMachine(map_sensitivity(5.0))
        machine.reset(now)
        tr = machine.update(accel, beta, now)
        if tr is not None and tr.completed:
            count += 1
    """

    def __init__(
        self,
        params: TuningParameters,
        guards: Optional[TransitionGuards] = None,
        now: float = 0.0
    ):
        self.params = params
        self.guards = guards if guards is not None else make_guards("all")

        self.state = STATE_STANDING
        self.last_transition_time = now
        self.anchor: Optional[Reading] = None

        # Diagnostics
        self.completed = 0
        self.abandoned = 0

    def reset(self, now: float):
        """Back to STANDING with a fresh transition timestamp."""
        self.state = STATE_STANDING
        self.last_transition_time = now
        self.anchor = None

    def set_parameters(self, params: TuningParameters):
        """Install new parameters; they apply from the next update()."""
        self.params = params

    def set_guards(self, guards: TransitionGuards):
        self.guards = guards

    def _move(self, to_state: str, reading: Reading, now: float,
              completed: bool = False, abandoned: bool = False) -> Transition:
        tr = Transition(self.state, to_state, now, completed=completed, abandoned=abandoned)
        if abandoned:
            self.abandoned += 1
            logger.debug("Abandoned rep in %s after %.2fs", self.state,
                         now - self.last_transition_time)
        if completed:
            self.completed += 1
        self.state = to_state
        self.last_transition_time = now
        self.anchor = reading
        return tr

    def update(self, accel: float, beta: float, now: float) -> Optional[Transition]:
        """
        Evaluate one tick.

        Args:
            accel: Smoothed vertical acceleration (m/s²)
            beta: Smoothed forward tilt (degrees)
            now: Monotonic time (seconds)

        Returns:
            The Transition taken, or None. Missing or non-finite input
            never transitions.
        """
        if not _finite(accel, beta, now):
            return None

        reading = Reading(float(accel), float(beta))
        p = self.params
        dt = now - self.last_transition_time

        # First valid reading of a fresh cycle becomes the movement reference
        if self.anchor is None:
            self.anchor = reading

        if self.state == STATE_STANDING:
            # Anchor tracks the lowest posture seen since entering STANDING
            self.anchor = Reading(min(self.anchor.accel, reading.accel),
                                  min(self.anchor.beta, reading.beta))
            if dt > p.cooldown_time and self.guards.squat_entry(reading, self.anchor, p):
                return self._move(STATE_SQUATTING, reading, now)

        elif self.state == STATE_SQUATTING:
            if dt > p.min_action_time and self.guards.rise(reading, self.anchor, p):
                return self._move(STATE_RISING, reading, now)
            # squat held too long without rising
            if dt > p.max_action_time:
                return self._move(STATE_STANDING, reading, now, abandoned=True)

        elif self.state == STATE_RISING:
            if dt > p.cooldown_time and self.guards.stand_confirm(reading, self.anchor, p):
                return self._move(STATE_STANDING, reading, now, completed=True)
            # rise never confirmed
            if dt > p.max_action_time:
                return self._move(STATE_STANDING, reading, now, abandoned=True)

        return None
