"""
Sensor source boundary for SquatCount.

A source pushes device-motion and device-orientation readings into a
session through two callbacks. Acquiring the source (permissions, hardware)
can fail; that failure disables tracking instead of crashing the process.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MotionCallback = Callable[[Optional[float]], object]
OrientationCallback = Callable[[Optional[float]], object]


class SensorUnavailableError(RuntimeError):
    """Motion/orientation source missing or permission denied."""


class MotionSource:
    """
    Base class for anything that delivers motion and orientation readings.

    Subclasses call `on_motion(y)` with accelerationIncludingGravity.y and
    `on_orientation(beta)` with the forward tilt, from a single thread or
    event loop. Either value may be None when the axis is not reported.
    """

    name = "motion-source"

    def start(self, on_motion: MotionCallback, on_orientation: OrientationCallback):
        """Request permission and begin delivering readings.

        Raises:
            SensorUnavailableError: permission denied or sensor missing
        """
        raise NotImplementedError

    def close(self):
        pass


def attach_source(session, source: MotionSource) -> bool:
    """
    Connect a source to a session.

    Returns:
        True if the source started; False if it was unavailable, in which
        case the session is marked unavailable with the reason.
    """
    try:
        source.start(session.on_motion, session.on_orientation)
    except SensorUnavailableError as e:
        session.mark_unavailable(e)
        return False
    session.mark_available()
    logger.info("Sensor source %s attached", source.name)
    return True
