"""Metrics module."""

from .registry import (
    record_connect,
    record_connection_state,
    record_decode_error,
    record_disconnect,
    record_exchange,
    record_exchange_latency,
    record_monitor_tick,
    record_status_transition,
    start_metrics_server,
)

__all__ = [
    "record_connect",
    "record_connection_state",
    "record_decode_error",
    "record_disconnect",
    "record_exchange",
    "record_exchange_latency",
    "record_monitor_tick",
    "record_status_transition",
    "start_metrics_server",
]
