"""
Offline replay of recorded motion data.

Loads a recording written by MotionRecorder (or the browser data collector)
and feeds it through a SquatSession on a simulated clock, so thresholds and
sensitivity can be checked against real squat sets.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from . import config
from .resample import estimate_sample_rate, resample_to_hz, validate_sample_rate
from .session import RepEvent, SquatSession

logger = logging.getLogger(__name__)

FIELDS = ["accel_y", "beta"]


class RecordingError(ValueError):
    """Recording file missing, unreadable or not in the expected layout."""


class ReplayClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def set(self, t: float):
        # never run backwards
        if t > self.now:
            self.now = float(t)

    def advance(self, dt: float) -> float:
        if dt > 0:
            self.now += dt
        return self.now


def _axis(section, key):
    if not isinstance(section, dict):
        return None
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def parse_records(data: Any) -> List[Dict[str, Optional[float]]]:
    """
    Flatten recorded samples into {"timestamp" (s), "accel_y", "beta"} rows.

    Raises:
        RecordingError: data is not a list of timestamped records
    """
    if not isinstance(data, list):
        raise RecordingError("Recording must be a JSON list of samples")

    rows = []
    for i, rec in enumerate(data):
        if not isinstance(rec, dict):
            raise RecordingError(f"Sample {i} is not an object")
        ts = rec.get("timestamp")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            raise RecordingError(f"Sample {i} has no numeric timestamp")
        rows.append({
            "timestamp": float(ts) / 1000.0,
            "accel_y": _axis(rec.get("acceleration"), "y"),
            "beta": _axis(rec.get("orientation"), "beta"),
        })

    rows.sort(key=lambda r: r["timestamp"])
    return rows


def load_recording(path: str) -> List[Dict[str, Optional[float]]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RecordingError(f"Cannot read recording {path}: {e}") from e
    return parse_records(data)


def recording_stats(rows: List[Dict[str, Optional[float]]],
                    expected_hz: float = 1.0 / config.SAMPLE_INTERVAL_SEC) -> dict:
    duration = rows[-1]["timestamp"] - rows[0]["timestamp"] if rows else 0.0
    rate = estimate_sample_rate(rows)
    return {
        "samples": len(rows),
        "duration_sec": round(duration, 3),
        "estimated_hz": None if rate is None else round(rate, 2),
        "motion_samples": sum(1 for r in rows if r["accel_y"] is not None),
        "orientation_samples": sum(1 for r in rows if r["beta"] is not None),
        "rate_check": validate_sample_rate(rows, expected_hz),
    }


def replay_recording(
    rows: List[Dict[str, Optional[float]]],
    session: Optional[SquatSession] = None,
    resample_hz: Optional[float] = None,
    **session_kwargs
) -> Tuple[SquatSession, List[RepEvent]]:
    """
    Run recorded rows through a session.

    Args:
        rows: Output of load_recording / parse_records
        session: Session to drive; must use a ReplayClock. A new one is
                 built from session_kwargs when omitted.
        resample_hz: Optionally put the rows on a uniform grid first

    Returns:
        (session, rep events produced during the replay)
    """
    if session is None:
        session = SquatSession(clock=ReplayClock(), **session_kwargs)
    clock = session.clock
    if not isinstance(clock, ReplayClock):
        raise ValueError("replay needs a session driven by a ReplayClock")

    if resample_hz:
        rows = resample_to_hz(rows, resample_hz, FIELDS)

    offset = clock.now - rows[0]["timestamp"] if rows else 0.0
    session.start()

    events: List[RepEvent] = []
    for row in rows:
        clock.set(row["timestamp"] + offset)
        for event in (session.on_motion(row["accel_y"]), session.on_orientation(row["beta"])):
            if event is not None:
                events.append(event)

    logger.info("Replayed %d samples: %d reps", len(rows), session.count)
    return session, events
