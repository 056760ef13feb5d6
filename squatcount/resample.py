"""
Sample-rate helpers for recorded sensor data.

Recordings are flattened to dicts with a `timestamp` in seconds plus numeric
channel fields before these helpers are applied.
"""

import math
from typing import Any, Dict, List, Optional

import numpy as np


def estimate_sample_rate(
    samples: List[Dict[str, Any]],
    timestamp_key: str = "timestamp"
) -> Optional[float]:
    """
    Estimate the sample rate from timestamps.

    Returns:
        Estimated sample rate in Hz, or None if it cannot be determined
    """
    if len(samples) < 2:
        return None

    duration = samples[-1][timestamp_key] - samples[0][timestamp_key]
    if duration <= 0:
        return None

    return (len(samples) - 1) / duration


def validate_sample_rate(
    samples: List[Dict[str, Any]],
    expected_hz: float,
    tolerance_pct: float = 10.0,
    timestamp_key: str = "timestamp"
) -> Dict[str, Any]:
    """
    Check a recording's rate against the expected capture rate.

    Returns:
        {
            "valid": bool,
            "estimated_hz": float,
            "deviation_pct": float,
            "jitter_ms": float (std dev of sample intervals)
        }
    """
    estimated = estimate_sample_rate(samples, timestamp_key)
    if estimated is None:
        return {
            "valid": False,
            "estimated_hz": None,
            "deviation_pct": None,
            "jitter_ms": None,
            "error": "Need at least 2 samples spanning a positive duration"
        }

    deviation_pct = abs(estimated - expected_hz) / expected_hz * 100.0

    times = np.asarray([s[timestamp_key] for s in samples], dtype=np.float64)
    jitter_ms = float(np.std(np.diff(times))) * 1000.0

    return {
        "valid": deviation_pct <= tolerance_pct,
        "estimated_hz": round(estimated, 2),
        "deviation_pct": round(deviation_pct, 2),
        "jitter_ms": round(jitter_ms, 3)
    }


def resample_to_hz(
    samples: List[Dict[str, Any]],
    target_hz: float,
    fields: List[str],
    timestamp_key: str = "timestamp"
) -> List[Dict[str, Any]]:
    """
    Resample selected numeric fields onto a uniform time grid.

    Missing (None/NaN) values are excluded from the interpolation of that
    field; a field with no valid values stays None in the output.

    Args:
        samples: Flat dicts ordered by timestamp (seconds)
        target_hz: Output rate
        fields: Field names to interpolate
        timestamp_key: Key name for timestamp field
    """
    if target_hz <= 0:
        raise ValueError("target_hz must be positive")
    if len(samples) < 2:
        return [dict(s) for s in samples]

    times = np.asarray([s[timestamp_key] for s in samples], dtype=np.float64)
    duration = times[-1] - times[0]
    if duration <= 0:
        return [dict(samples[0])]

    n = int(math.floor(duration * target_hz + 1e-9)) + 1
    grid = times[0] + np.arange(n) / target_hz

    out: List[Dict[str, Any]] = [{timestamp_key: float(t)} for t in grid]
    for field in fields:
        raw = np.asarray(
            [np.nan if s.get(field) is None else float(s[field]) for s in samples],
            dtype=np.float64)
        ok = np.isfinite(raw)
        if not ok.any():
            for row in out:
                row[field] = None
            continue
        values = np.interp(grid, times[ok], raw[ok])
        for row, v in zip(out, values):
            row[field] = float(v)
    return out
