"""Prometheus metrics registry for the appliance connection."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

# Metric definitions
midea_exchange_total: Final = Counter(  # type: ignore[assignment]
    "midea_exchange_total",
    "Total send-then-receive exchanges",
    ["device_id", "command", "outcome"],
)

midea_exchange_latency_seconds: Final = Histogram(  # type: ignore[assignment]
    "midea_exchange_latency_seconds",
    "Exchange round-trip latency in seconds",
    ["device_id"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 8.0),
)

midea_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "midea_decode_errors_total",
    "Total response decode errors",
    ["device_id", "reason"],
)

midea_connect_total: Final = Counter(  # type: ignore[assignment]
    "midea_connect_total",
    "Total connect attempts",
    ["device_id", "outcome"],
)

midea_disconnect_total: Final = Counter(  # type: ignore[assignment]
    "midea_disconnect_total",
    "Total session teardowns",
    ["device_id", "reason"],
)

midea_connection_state: Final = Gauge(  # type: ignore[assignment]
    "midea_connection_state",
    "Current connection state",
    ["device_id", "state"],
)

midea_monitor_tick_total: Final = Counter(  # type: ignore[assignment]
    "midea_monitor_tick_total",
    "Total keep-alive monitor ticks",
    ["device_id", "action"],
)

midea_status_transition_total: Final = Counter(  # type: ignore[assignment]
    "midea_status_transition_total",
    "Total observable status transitions",
    ["device_id", "status", "detail"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_exchange(device_id: str, command: str, outcome: str) -> None:
    """Record a finished exchange."""
    midea_exchange_total.labels(device_id=device_id, command=command, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_exchange_latency(device_id: str, latency_seconds: float) -> None:
    """Record exchange latency."""
    midea_exchange_latency_seconds.labels(device_id=device_id).observe(latency_seconds)  # type: ignore[no-untyped-call]


def record_decode_error(device_id: str, reason: str) -> None:
    """Record a decode error."""
    midea_decode_errors_total.labels(device_id=device_id, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_connect(device_id: str, outcome: str) -> None:
    """Record a connect attempt."""
    midea_connect_total.labels(device_id=device_id, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_disconnect(device_id: str, reason: str) -> None:
    """Record a session teardown."""
    midea_disconnect_total.labels(device_id=device_id, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_connection_state(device_id: str, state: str) -> None:
    """Record connection state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in ["disconnected", "connected"]:
        value = 1 if s == state else 0
        midea_connection_state.labels(device_id=device_id, state=s).set(value)  # type: ignore[no-untyped-call]


def record_monitor_tick(device_id: str, action: str) -> None:
    """Record a monitor tick and what it did ("reconnect" or "poll")."""
    midea_monitor_tick_total.labels(device_id=device_id, action=action).inc()  # type: ignore[no-untyped-call]


def record_status_transition(device_id: str, status: str, detail: str) -> None:
    """Record an emitted status transition."""
    midea_status_transition_total.labels(device_id=device_id, status=status, detail=detail).inc()  # type: ignore[no-untyped-call]
