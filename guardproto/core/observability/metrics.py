from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter
from prometheus_client import Histogram

# Named counters (in-process, resettable for tests)
_NAMED = Counter()

CONSOLIDATIONS_TOTAL = PromCounter(
    "guardproto_consolidations_total",
    "Protocol consolidation runs",
    ["protocol", "status"],
)

CONSOLIDATION_DURATION_SECONDS = Histogram(
    "guardproto_consolidation_duration_seconds",
    "Protocol consolidation duration in seconds",
    ["protocol"],
)

SELF_TEST_FAILURES_TOTAL = PromCounter(
    "guardproto_self_test_failures_total",
    "Failed implementation self-tests",
    ["protocol", "implementation"],
)

HTTP_REQUESTS_TOTAL = PromCounter(
    "guardproto_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)


def reset_metrics() -> None:
    """
    Test helper: clears named counters to avoid cross-test leakage.
    Prometheus collectors are process-global and are left alone.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)


def record_consolidation(protocol: str, status: str, duration_s: float) -> None:
    CONSOLIDATIONS_TOTAL.labels(protocol=protocol, status=status).inc()
    CONSOLIDATION_DURATION_SECONDS.labels(protocol=protocol).observe(duration_s)
    inc_named("consolidations_total")
    inc_named(f"consolidations_{status}")


def record_self_test_failure(protocol: str, implementation: str) -> None:
    SELF_TEST_FAILURES_TOTAL.labels(protocol=protocol, implementation=implementation).inc()
    inc_named("self_test_failures_total")
