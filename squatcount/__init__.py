"""
SquatCount Detection Pipeline

Counts squat repetitions from a phone's raw motion and orientation stream
using heuristics only:
- SampleBuffer: per-channel sliding window with a moving average
- map_sensitivity: one speed/sensitivity scalar -> TuningParameters
- make_guards: AND/OR posture checks shared by every transition
- RepetitionStateMachine: STANDING -> SQUATTING -> RISING -> STANDING
- SquatSession: start/pause/reset lifecycle and the rep counter

Usage:
    from squatcount import SquatSession, Channel

    session = SquatSession(feedback=lambda n: print("rep", n))
    session.start()

    # In the sensor callbacks:
    session.on_sample(Channel.ACCELERATION, accel_y)
    session.on_sample(Channel.ORIENTATION, beta)
"""

from .buffer import Channel, SampleBuffer
from .sensitivity import ChannelThresholds, TuningParameters, map_sensitivity
from .guards import Reading, TransitionGuards, make_guards
from .state_machine import (
    RepetitionStateMachine,
    Transition,
    STATE_STANDING,
    STATE_SQUATTING,
    STATE_RISING,
)
from .session import RepEvent, SquatSession
from .sensors import MotionSource, SensorUnavailableError, attach_source

__all__ = [
    # Buffer
    'Channel',
    'SampleBuffer',

    # Sensitivity
    'ChannelThresholds',
    'TuningParameters',
    'map_sensitivity',

    # Guards
    'Reading',
    'TransitionGuards',
    'make_guards',

    # State machine
    'RepetitionStateMachine',
    'Transition',
    'STATE_STANDING',
    'STATE_SQUATTING',
    'STATE_RISING',

    # Session
    'RepEvent',
    'SquatSession',

    # Sensors
    'MotionSource',
    'SensorUnavailableError',
    'attach_source',
]

__version__ = '1.0.0'
