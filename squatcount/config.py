"""
Configuration for SquatCount.

Defaults can be overridden through SQUATCOUNT_* environment variables.
Unparseable values fall back to the default.
"""

import math
import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_choice(name: str, default: str, choices) -> str:
    raw = os.getenv(name, "").strip().lower()
    return raw if raw in choices else default


# =============================================================================
# Server
# =============================================================================

HOST = os.getenv("SQUATCOUNT_HOST", "0.0.0.0")
PORT = _env_int("SQUATCOUNT_PORT", 8765)

# Status broadcast period while clients are connected
STATUS_INTERVAL_SEC = 0.1

# =============================================================================
# Detection
# =============================================================================

# Sliding window size per channel
BUFFER_SIZE = max(1, _env_int("SQUATCOUNT_BUFFER_SIZE", 5))

SENSITIVITY_RANGE = (1.0, 10.0)
DEFAULT_SENSITIVITY = _env_float("SQUATCOUNT_SENSITIVITY", 5.0)

# "all" requires acceleration and tilt to agree, "any" accepts either
COMBINATOR = _env_choice("SQUATCOUNT_COMBINATOR", "all", ("all", "and", "any", "or"))

# Typical smoothed readings (accelerationIncludingGravity.y in m/s², beta in degrees)
STANDING_ACCEL = -8.0
STANDING_BETA = 35.0
SQUATTING_ACCEL = -3.5
SQUATTING_BETA = 65.0

# Endpoints are (lowest sensitivity, highest sensitivity), in seconds
MIN_ACTION_TIME_RANGE = (1.85, 0.5)
MAX_ACTION_TIME_RANGE = (3.75, 1.5)
COOLDOWN_TIME_RANGE = (0.5, 0.35)

# Fraction of the standing/squatting band kept at each sensitivity endpoint
BAND_FACTOR_RANGE = (1.0, 0.7)

# Fractions of the band
STANDING_TOLERANCE_FRAC = 0.2
MIN_CHANGE_FRAC = 0.15

# Readings outside these are treated as malformed
VALID_ACCEL_RANGE = (-160.0, 160.0)
VALID_BETA_RANGE = (-180.0, 180.0)

# =============================================================================
# Recording
# =============================================================================

SAMPLE_INTERVAL_SEC = 0.02  # 50 Hz snapshots
