"""
Raw motion recorder for SquatCount.

Captures the latest motion and orientation readings at a fixed interval so
a squat set can be replayed offline while tuning thresholds. Records use
the same layout the browser data collector produced:

    {"timestamp": <ms since start>,
     "acceleration": {"x": .., "y": .., "z": ..} | null,
     "orientation": {"alpha": .., "beta": .., "gamma": ..} | null}
"""

import json
import logging
import os
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from . import config

logger = logging.getLogger(__name__)


def default_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat().replace("+00:00", "Z").replace(":", "-")
    return f"squat-motion-data-{stamp}.json"


class MotionRecorder:
    """
    Fixed-rate snapshotter of the most recent sensor readings.

    Readings arrive whenever the device delivers them; `tick(now)` stores one
    snapshot per elapsed interval regardless of the sensors' own rates.

    Usage:
        rec = MotionRecorder()
        rec.begin()
        rec.on_motion(x, y, z)          # from the motion callback
        rec.on_orientation(a, b, g)     # from the orientation callback
        rec.tick()                      # from the main loop
        rec.stop()
        rec.save("squat.json")
    """

    def __init__(
        self,
        interval_sec: float = config.SAMPLE_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic
    ):
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self.interval = interval_sec
        self.clock = clock

        self.recording = False
        self.records: List[dict] = []
        self.start_t: Optional[float] = None
        self.end_t: Optional[float] = None
        self._next_t: Optional[float] = None

        self._last_motion: Optional[dict] = None
        self._last_orientation: Optional[dict] = None

    def begin(self):
        """Start a new recording, discarding any previous one."""
        self.records = []
        self._last_motion = None
        self._last_orientation = None
        self.start_t = self.clock()
        self.end_t = None
        self._next_t = self.start_t
        self.recording = True

    def on_motion(self, x=None, y=None, z=None):
        self._last_motion = {"x": x, "y": y, "z": z}

    def on_orientation(self, alpha=None, beta=None, gamma=None):
        self._last_orientation = {"alpha": alpha, "beta": beta, "gamma": gamma}

    def sample(self, now: Optional[float] = None) -> Optional[dict]:
        """Store one snapshot unconditionally."""
        if not self.recording:
            return None
        now = self.clock() if now is None else now
        record = {
            "timestamp": int(round((now - self.start_t) * 1000.0)),
            "acceleration": dict(self._last_motion) if self._last_motion else None,
            "orientation": dict(self._last_orientation) if self._last_orientation else None,
        }
        self.records.append(record)
        return record

    def tick(self, now: Optional[float] = None) -> int:
        """Store snapshots for every interval elapsed up to `now`."""
        if not self.recording:
            return 0
        now = self.clock() if now is None else now
        n = 0
        while self._next_t <= now:
            self.sample(self._next_t)
            self._next_t += self.interval
            n += 1
        return n

    def stop(self):
        if not self.recording:
            return
        self.end_t = self.clock()
        self.recording = False
        logger.info("Recording stopped: %s", self.status_text())

    def elapsed(self) -> float:
        if self.start_t is None:
            return 0.0
        end = self.clock() if self.recording else (self.end_t or self.start_t)
        return max(0.0, end - self.start_t)

    def status_text(self) -> str:
        return f"Recorded {len(self.records)} samples ({self.elapsed():.1f}s)"

    def save(self, path: str) -> str:
        """Write the records as a JSON list (atomic replace)."""
        dirname = os.path.dirname(path)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self.records, f, indent=2)
        os.replace(tmp, path)
        return path
