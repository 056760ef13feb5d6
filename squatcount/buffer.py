"""
Sliding-window sample buffer for SquatCount.

Keeps the most recent N readings per channel (vertical acceleration and
forward tilt) and exposes a moving-average value for each. No outlier
rejection is done here; malformed readings are simply not recorded.
"""

import math
from collections import deque
from enum import Enum
from typing import Deque, Dict, Optional, Tuple

import numpy as np

from . import config


class Channel(str, Enum):
    """Signal channels consumed by the detector."""

    ACCELERATION = "acceleration"  # accelerationIncludingGravity.y (m/s²)
    ORIENTATION = "orientation"    # beta, forward tilt (degrees)


DEFAULT_VALID_RANGES: Dict[Channel, Tuple[float, float]] = {
    Channel.ACCELERATION: config.VALID_ACCEL_RANGE,
    Channel.ORIENTATION: config.VALID_BETA_RANGE,
}


class SampleBuffer:
    """
    Fixed-capacity FIFO window per channel with a moving average.

    Usage:
        buf = SampleBuffer(size=5)
        buf.push(Channel.ACCELERATION, -8.9)
        accel = buf.smoothed(Channel.ACCELERATION)
    """

    EMPTY_VALUE = 0.0

    def __init__(
        self,
        size: int = config.BUFFER_SIZE,
        valid_ranges: Optional[Dict[Channel, Tuple[float, float]]] = None
    ):
        """
        Args:
            size: Window capacity per channel (oldest entries evicted first)
            valid_ranges: Optional (lo, hi) per channel; readings outside
                          the range are rejected as malformed
        """
        if size < 1:
            raise ValueError("buffer size must be at least 1")
        self.size = int(size)
        self.valid_ranges = dict(DEFAULT_VALID_RANGES if valid_ranges is None else valid_ranges)
        self._windows: Dict[Channel, Deque[float]] = {
            ch: deque(maxlen=self.size) for ch in Channel
        }

    def _accepts(self, channel: Channel, value) -> bool:
        if value is None or isinstance(value, bool):
            return False
        try:
            value = float(value)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(value):
            return False
        bounds = self.valid_ranges.get(channel)
        if bounds is not None and not (bounds[0] <= value <= bounds[1]):
            return False
        return True

    def push(self, channel: Channel, value) -> bool:
        """
        Append a raw reading to a channel's window.

        Absent (None), non-numeric, NaN/inf and out-of-range readings are
        skipped rather than recorded as zero.

        Returns:
            True if the reading was recorded
        """
        channel = Channel(channel)
        if not self._accepts(channel, value):
            return False
        self._windows[channel].append(float(value))
        return True

    def smoothed(self, channel: Channel) -> float:
        """Mean of the channel's window, or EMPTY_VALUE if it holds nothing."""
        window = self._windows[Channel(channel)]
        if not window:
            return self.EMPTY_VALUE
        return float(np.mean(window))

    def is_empty(self, channel: Channel) -> bool:
        return not self._windows[Channel(channel)]

    def count(self, channel: Channel) -> int:
        return len(self._windows[Channel(channel)])

    def values(self, channel: Channel) -> Tuple[float, ...]:
        """Snapshot of the window, oldest first."""
        return tuple(self._windows[Channel(channel)])

    def clear(self):
        for window in self._windows.values():
            window.clear()
