"""Central configuration for the route tracker.

All values are constants imported by the rest of the package. Tunables can be
overridden through environment variables (optionally via a local `.env`).
Presentation constants used by the projector are fixed on purpose so that
rendered output stays stable between environments.
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------
# Mean Earth radius used by the haversine distance.
EARTH_RADIUS_KM = 6371.0


# ---------------------------------------------------------------------------
# Projection (presentation constants, not configurable)
# ---------------------------------------------------------------------------
# Margin reserved on every side of the viewport.
PROJECTION_PADDING_PX = 20

# Range (degrees) substituted for a zero-width or zero-height extent.
DEGENERATE_RANGE_DEG = 0.001

# Accuracy indicator radius is min(accuracy_m / divisor, max) pixels.
ACCURACY_PX_DIVISOR = 10.0
ACCURACY_PX_MAX = 20.0

# Routes longer than LABEL_MIN_POINTS get every (n // LABEL_DIVISIONS)-th
# point tagged for an index label.
LABEL_MIN_POINTS = 10
LABEL_DIVISIONS = 5


# ---------------------------------------------------------------------------
# Deferred task scheduler
# ---------------------------------------------------------------------------
# Length of one render frame; background tasks that find no idle time retry
# after this delay.
SCHEDULER_FRAME_INTERVAL_SECONDS = _env_float(
    "SCHEDULER_FRAME_INTERVAL_SECONDS", 0.016
)

# Worst-case wait for an idle period before a background task runs anyway.
SCHEDULER_MAX_DELAY_SECONDS = _env_float("SCHEDULER_MAX_DELAY_SECONDS", 1.0)


# ---------------------------------------------------------------------------
# Sample source
# ---------------------------------------------------------------------------
# Defaults handed to the sample source on activation. Lower network tiers
# widen timeout / cache age (see network.SOURCE_POLICY).
SOURCE_HIGH_ACCURACY = _env_bool("SOURCE_HIGH_ACCURACY", True)
SOURCE_DEFAULT_TIMEOUT_MS = _env_int("SOURCE_DEFAULT_TIMEOUT_MS", 10_000)
SOURCE_DEFAULT_MAX_CACHE_AGE_MS = _env_int("SOURCE_DEFAULT_MAX_CACHE_AGE_MS", 5_000)

# How long a probed network status is reused before polling again.
NETWORK_STATUS_TTL_SECONDS = _env_float("NETWORK_STATUS_TTL_SECONDS", 5.0)


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------
SIMULATION_POINTS = _env_int("SIMULATION_POINTS", 30)
SIMULATION_INTERVAL_MS = _env_int("SIMULATION_INTERVAL_MS", 1_000)
# Real seconds slept between delivered samples (0 delivers as fast as possible).
SIMULATION_PACE_SECONDS = _env_float("SIMULATION_PACE_SECONDS", 0.0)
SIMULATION_ORIGIN = (
    _env_float("SIMULATION_ORIGIN_LAT", 51.4800),
    _env_float("SIMULATION_ORIGIN_LNG", -3.1800),
)
# Degrees moved per sample along the synthetic path.
SIMULATION_STEP_DEG = _env_float("SIMULATION_STEP_DEG", 0.0001)
SIMULATION_ACCURACY_M = _env_float("SIMULATION_ACCURACY_M", 8.0)
# Max random offset (degrees) added to each synthetic fix; 0 disables noise.
SIMULATION_JITTER_DEG = _env_float("SIMULATION_JITTER_DEG", 0.00002)
SIMULATION_SEED = _env_int("SIMULATION_SEED", 7)
SIMULATION_VIEWPORT = (
    _env_int("SIMULATION_VIEWPORT_WIDTH", 320),
    _env_int("SIMULATION_VIEWPORT_HEIGHT", 240),
)
