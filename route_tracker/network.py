"""Network-quality hints and the sample-source adaptation policy.

Network state is supplied through an injected provider instead of being read
from the environment, so the timeout / cache-age policy can be tested on its
own.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Optional, Protocol, Tuple

from cachetools import TTLCache

from .config import (
    NETWORK_STATUS_TTL_SECONDS,
    SOURCE_DEFAULT_MAX_CACHE_AGE_MS,
    SOURCE_DEFAULT_TIMEOUT_MS,
)
from .source import SourceOptions

_LOG = logging.getLogger(__name__)


class QualityTier(str, Enum):
    VERY_SLOW = "very-slow"
    SLOW = "slow"
    FAST = "fast"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class NetworkStatus:
    online: bool = True
    tier: QualityTier = QualityTier.UNKNOWN
    effective_type: Optional[str] = None
    downlink_mbps: Optional[float] = None


# Tier -> (timeout_ms, max_cache_age_ms) handed to the sample source.
SOURCE_POLICY: Dict[QualityTier, Tuple[int, int]] = {
    QualityTier.VERY_SLOW: (15_000, 10_000),
    QualityTier.SLOW: (12_000, 7_000),
    QualityTier.FAST: (SOURCE_DEFAULT_TIMEOUT_MS, SOURCE_DEFAULT_MAX_CACHE_AGE_MS),
    QualityTier.UNKNOWN: (SOURCE_DEFAULT_TIMEOUT_MS, SOURCE_DEFAULT_MAX_CACHE_AGE_MS),
}

_EFFECTIVE_TYPE_TIERS = {
    "slow-2g": QualityTier.VERY_SLOW,
    "2g": QualityTier.VERY_SLOW,
    "3g": QualityTier.SLOW,
    "4g": QualityTier.FAST,
}


def tier_from_effective_type(effective_type: Optional[str]) -> QualityTier:
    """Map a connection effective type (``"slow-2g"``, ``"3g"`` ...) to a tier."""

    if not effective_type:
        return QualityTier.UNKNOWN
    return _EFFECTIVE_TYPE_TIERS.get(effective_type.strip().lower(), QualityTier.UNKNOWN)


def status_from_effective_type(
    effective_type: Optional[str],
    *,
    online: bool = True,
    downlink_mbps: Optional[float] = None,
) -> NetworkStatus:
    return NetworkStatus(
        online=online,
        tier=tier_from_effective_type(effective_type),
        effective_type=effective_type,
        downlink_mbps=downlink_mbps,
    )


def adapt_source_options(base: SourceOptions, status: NetworkStatus) -> SourceOptions:
    """Return ``base`` with timeout and cache age widened for the network tier.

    An offline host is treated like the slowest tier. Fast and unknown tiers
    keep whatever ``base`` carries.
    """

    tier = status.tier if status.online else QualityTier.VERY_SLOW
    if tier in (QualityTier.FAST, QualityTier.UNKNOWN):
        return base
    timeout_ms, max_age_ms = SOURCE_POLICY[tier]
    return replace(base, timeout_ms=timeout_ms, max_cache_age_ms=max_age_ms)


def describe_status(status: NetworkStatus) -> str:
    """Return the short indicator text for a network status."""

    if not status.online:
        return "Offline"
    if status.effective_type:
        text = status.effective_type.upper()
        if status.downlink_mbps:
            text += f" ({status.downlink_mbps:g} Mbps)"
        return text
    return "Online"


class NetworkProvider(Protocol):
    def current(self) -> NetworkStatus: ...


class StaticNetworkProvider:
    """Provider returning a fixed (but replaceable) status."""

    def __init__(self, status: NetworkStatus | None = None) -> None:
        self._status = status or NetworkStatus()

    def current(self) -> NetworkStatus:
        return self._status

    def update(self, status: NetworkStatus) -> None:
        self._status = status


class CachedNetworkProvider:
    """Polls ``probe`` at most once per TTL window and reuses the result."""

    _KEY = "status"

    def __init__(
        self,
        probe: Callable[[], NetworkStatus],
        ttl_seconds: float = NETWORK_STATUS_TTL_SECONDS,
        timer: Optional[Callable[[], float]] = None,
    ) -> None:
        self._probe = probe
        if timer is None:
            self._cache: TTLCache[str, NetworkStatus] = TTLCache(
                maxsize=1, ttl=ttl_seconds
            )
        else:
            self._cache = TTLCache(maxsize=1, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

    def current(self) -> NetworkStatus:
        with self._lock:
            cached = self._cache.get(self._KEY)
            if cached is not None:
                return cached
            status = self._probe()
            self._cache[self._KEY] = status
        _LOG.debug(
            "Network status refreshed: online=%s tier=%s",
            status.online,
            status.tier.value,
        )
        return status

    def invalidate(self) -> None:
        with self._lock:
            self._cache.clear()


__all__ = [
    "CachedNetworkProvider",
    "NetworkProvider",
    "NetworkStatus",
    "QualityTier",
    "SOURCE_POLICY",
    "StaticNetworkProvider",
    "adapt_source_options",
    "describe_status",
    "status_from_effective_type",
    "tier_from_effective_type",
]
