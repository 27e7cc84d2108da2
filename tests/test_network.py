"""Tests for network tiers and the sample-source adaptation policy."""

from __future__ import annotations

import pytest

from route_tracker.network import (
    SOURCE_POLICY,
    CachedNetworkProvider,
    NetworkStatus,
    QualityTier,
    StaticNetworkProvider,
    adapt_source_options,
    describe_status,
    status_from_effective_type,
    tier_from_effective_type,
)
from route_tracker.source import Accuracy, SourceOptions


@pytest.mark.parametrize(
    "effective_type, tier",
    [
        ("slow-2g", QualityTier.VERY_SLOW),
        ("2g", QualityTier.VERY_SLOW),
        ("3g", QualityTier.SLOW),
        (" 4G ", QualityTier.FAST),
        ("5g", QualityTier.UNKNOWN),
        (None, QualityTier.UNKNOWN),
        ("", QualityTier.UNKNOWN),
    ],
)
def test_tier_from_effective_type(effective_type, tier) -> None:
    assert tier_from_effective_type(effective_type) is tier


def test_policy_table_values() -> None:
    assert SOURCE_POLICY[QualityTier.VERY_SLOW] == (15_000, 10_000)
    assert SOURCE_POLICY[QualityTier.SLOW] == (12_000, 7_000)
    assert SOURCE_POLICY[QualityTier.FAST] == (10_000, 5_000)


@pytest.mark.parametrize(
    "status, expected",
    [
        (NetworkStatus(True, QualityTier.VERY_SLOW), (15_000, 10_000)),
        (NetworkStatus(True, QualityTier.SLOW), (12_000, 7_000)),
        (NetworkStatus(True, QualityTier.FAST), (10_000, 5_000)),
        (NetworkStatus(True, QualityTier.UNKNOWN), (10_000, 5_000)),
        (NetworkStatus(False, QualityTier.FAST), (15_000, 10_000)),
    ],
)
def test_adapt_source_options(status: NetworkStatus, expected) -> None:
    base = SourceOptions(desired_accuracy=Accuracy.HIGH, timeout_ms=10_000, max_cache_age_ms=5_000)
    adapted = adapt_source_options(base, status)
    assert (adapted.timeout_ms, adapted.max_cache_age_ms) == expected
    assert adapted.desired_accuracy is Accuracy.HIGH


def test_fast_tier_keeps_custom_base_options() -> None:
    base = SourceOptions(desired_accuracy=Accuracy.LOW, timeout_ms=3_000, max_cache_age_ms=0)
    assert adapt_source_options(base, NetworkStatus(True, QualityTier.FAST)) is base


def test_describe_status() -> None:
    assert describe_status(NetworkStatus(online=False)) == "Offline"
    assert describe_status(NetworkStatus(online=True)) == "Online"
    assert describe_status(status_from_effective_type("4g", downlink_mbps=10.0)) == "4G (10 Mbps)"
    assert describe_status(status_from_effective_type("3g")) == "3G"


def test_static_provider_can_be_updated() -> None:
    provider = StaticNetworkProvider()
    assert provider.current() == NetworkStatus()
    provider.update(NetworkStatus(online=False))
    assert provider.current().online is False


def test_cached_provider_polls_once_per_ttl() -> None:
    now = [0.0]
    calls = []

    def probe() -> NetworkStatus:
        calls.append(now[0])
        return NetworkStatus(True, QualityTier.SLOW)

    provider = CachedNetworkProvider(probe, ttl_seconds=5.0, timer=lambda: now[0])
    assert provider.current().tier is QualityTier.SLOW
    now[0] = 4.0
    provider.current()
    assert len(calls) == 1
    now[0] = 6.0
    provider.current()
    assert len(calls) == 2
    provider.invalidate()
    provider.current()
    assert len(calls) == 3
