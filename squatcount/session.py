"""
Session controller for SquatCount.

Owns the tracking lifecycle (start / pause / reset), the repetition counter
and the live tuning parameters, and wires incoming sensor samples through
the sample buffer into the repetition state machine.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from . import config
from .buffer import Channel, SampleBuffer
from .guards import make_guards
from .sensitivity import TuningParameters, map_sensitivity
from .state_machine import STATE_STANDING, RepetitionStateMachine, Transition

logger = logging.getLogger(__name__)

FeedbackSink = Callable[[int], None]


@dataclass(frozen=True)
class RepEvent:
    """Emitted once per completed repetition."""

    rep: int
    t: float
    tempo_sec: Optional[float] = None

    def as_dict(self) -> dict:
        return {
            "type": "rep_event",
            "rep": self.rep,
            "t": round(self.t, 3),
            "tempo_sec": self.tempo_sec,
        }


class SquatSession:
    """
    One user's counting session.

    Usage:
        session = SquatSession(feedback=lambda n: print("rep", n))
        session.start()
        session.on_sample(Channel.ACCELERATION, -8.7)
        session.on_sample(Channel.ORIENTATION, 33.0)
    """

    def __init__(
        self,
        feedback: Optional[FeedbackSink] = None,
        sensitivity: float = config.DEFAULT_SENSITIVITY,
        sensitivity_range: Tuple[float, float] = config.SENSITIVITY_RANGE,
        combinator: str = config.COMBINATOR,
        buffer_size: int = config.BUFFER_SIZE,
        clock: Callable[[], float] = time.monotonic,
        use_min_change: bool = True
    ):
        """
        Args:
            feedback: Called with the new count after every completed rep
            sensitivity: Initial sensitivity value
            sensitivity_range: (min, max) of the sensitivity control
            combinator: "all" or "any", see squatcount.guards
            buffer_size: Sliding window size per channel
            clock: Monotonic time source in seconds
            use_min_change: Require minimum movement between transitions
        """
        self.feedback = feedback
        self.clock = clock
        self.sensitivity_range = sensitivity_range
        self.use_min_change = use_min_change

        self.sensitivity = sensitivity
        self.params: TuningParameters = map_sensitivity(
            sensitivity, sensitivity_range, use_min_change=use_min_change)

        self.buffer = SampleBuffer(size=buffer_size)
        self.machine = RepetitionStateMachine(
            self.params, guards=make_guards(combinator), now=self.clock())

        self.count = 0
        self.tracking = False
        self.available = True
        self.unavailable_reason: Optional[str] = None

        self.rep_times: List[float] = []
        self.events: List[RepEvent] = []
        self._last_rep_t: Optional[float] = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _clear(self):
        self.buffer.clear()
        self.machine.reset(self.clock())

    def start(self) -> bool:
        """Begin accepting samples from a clean slate. No-op if already tracking."""
        if self.tracking:
            return True
        if not self.available:
            logger.warning("Cannot start tracking: %s", self.unavailable_reason)
            return False
        self._clear()
        self.tracking = True
        logger.info("Tracking started (sensitivity %.1f)", self.params.sensitivity)
        return True

    def pause(self):
        """Stop accepting samples and drop buffered data. Safe to call repeatedly."""
        if not self.tracking:
            return
        self.tracking = False
        self._clear()
        logger.info("Tracking paused at %d reps", self.count)

    def toggle(self) -> bool:
        if self.tracking:
            self.pause()
        else:
            self.start()
        return self.tracking

    def reset(self):
        """Zero the counter and stop tracking, whatever the current state."""
        self.count = 0
        self.tracking = False
        self.rep_times = []
        self.events = []
        self._last_rep_t = None
        self.machine.completed = 0
        self.machine.abandoned = 0
        self._clear()
        logger.info("Session reset")

    def mark_unavailable(self, reason):
        """Sensor source failed; disable tracking and keep the reason for display."""
        self.available = False
        self.unavailable_reason = str(reason) or "sensor unavailable"
        self.tracking = False
        self._clear()
        logger.error("Sensor initialization failed: %s", self.unavailable_reason)

    def mark_available(self):
        self.available = True
        self.unavailable_reason = None

    # -------------------------------------------------------------------------
    # Tuning
    # -------------------------------------------------------------------------

    def set_sensitivity(self, value: float) -> TuningParameters:
        """Remap and install parameters; effective from the next sample."""
        params = map_sensitivity(value, self.sensitivity_range, use_min_change=self.use_min_change)
        self.params = params
        self.sensitivity = params.sensitivity
        self.machine.set_parameters(params)
        return params

    def set_combinator(self, name: str):
        self.machine.set_guards(make_guards(name))

    # -------------------------------------------------------------------------
    # Samples
    # -------------------------------------------------------------------------

    def on_sample(self, channel: Channel, value) -> Optional[RepEvent]:
        """
        Feed one raw reading.

        Returns:
            A RepEvent if this sample completed a repetition, else None
        """
        if not self.tracking:
            return None
        if not self.buffer.push(channel, value):
            return None
        return self._evaluate()

    def on_motion(self, y) -> Optional[RepEvent]:
        return self.on_sample(Channel.ACCELERATION, y)

    def on_orientation(self, beta) -> Optional[RepEvent]:
        return self.on_sample(Channel.ORIENTATION, beta)

    def _evaluate(self) -> Optional[RepEvent]:
        now = self.clock()
        tr = self.machine.update(
            self.buffer.smoothed(Channel.ACCELERATION),
            self.buffer.smoothed(Channel.ORIENTATION),
            now,
        )
        if tr is None or not tr.completed:
            return None
        return self._on_rep(tr)

    def _on_rep(self, tr: Transition) -> RepEvent:
        self.count += 1

        tempo = None
        if self._last_rep_t is not None:
            dt = tr.t - self._last_rep_t
            if dt > 0:
                tempo = round(dt, 3)
                self.rep_times.append(dt)
        self._last_rep_t = tr.t

        event = RepEvent(rep=self.count, t=tr.t, tempo_sec=tempo)
        self.events.append(event)

        if self.feedback is not None:
            try:
                self.feedback(self.count)
            except Exception:
                logger.exception("Feedback sink failed for rep %d", self.count)
        return event

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self.machine.state if self.tracking else STATE_STANDING

    @property
    def status(self) -> str:
        if not self.available:
            return f"Sensor initialization failed: {self.unavailable_reason}"
        if self.tracking:
            return f"Counting... (speed: {self.params.sensitivity:.1f})"
        if self.count:
            return "Paused"
        return "Ready"

    def compute_avg_tempo(self):
        if not self.rep_times:
            return None
        return sum(self.rep_times) / len(self.rep_times)

    def live_readout(self) -> dict:
        """Current smoothed channels and the latest raw Y acceleration; None while empty."""
        raw_accel = self.buffer.values(Channel.ACCELERATION)
        readout = {"latest_accel_y": round(raw_accel[-1], 3) if raw_accel else None}
        for key, channel in (("smoothed_accel_y", Channel.ACCELERATION),
                             ("smoothed_beta", Channel.ORIENTATION)):
            readout[key] = None if self.buffer.is_empty(channel) else round(self.buffer.smoothed(channel), 3)
        return readout

    def summary(self) -> dict:
        avg_tempo = self.compute_avg_tempo()
        return {
            "total_reps": int(self.count),
            "tracking": bool(self.tracking),
            "state": self.state,
            "status": self.status,
            "abandoned_reps": int(self.machine.abandoned),
            "avg_tempo_sec": None if avg_tempo is None else round(float(avg_tempo), 3),
            "rep_times_sec": [round(float(x), 3) for x in self.rep_times],
            "combinator": self.machine.guards.name,
            "params": self.params.as_dict(),
            "live": self.live_readout(),
        }
