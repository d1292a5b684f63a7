import os

from midea_ac_lan import __version__

__all__ = [
    "CONFIG_DEVICEID",
    "CONFIG_IP",
    "CONFIG_POLLING_TIME",
    "CONFIG_PORT",
    "CONFIG_PROMPT_TONE",
    "MIDEA_CONNECT_TIMEOUT",
    "MIDEA_DEBUG",
    "MIDEA_DEFAULT_PORT",
    "MIDEA_LOG_CORRELATION_ENABLED",
    "MIDEA_LOG_FORMAT",
    "MIDEA_LOG_HUMAN_OUTPUT",
    "MIDEA_LOG_JSON_FILE",
    "MIDEA_LOG_NAME",
    "MIDEA_METRICS_PORT",
    "MIDEA_MONITOR_DELAY",
    "MIDEA_MONITOR_PERIOD",
    "MIDEA_PERF_THRESHOLD_MS",
    "MIDEA_PERF_TRACKING",
    "MIDEA_READ_BUFFER_SIZE",
    "MIDEA_READ_TIMEOUT",
    "MIDEA_STATUS_TRANSITION_HOLD",
    "MIDEA_VERSION",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
MIDEA_LOG_NAME: str = "midea_ac_lan"
MIDEA_VERSION: str = __version__

# Keys of the device configuration as written by users (see config.DeviceConfig)
CONFIG_IP = "ipAddress"
CONFIG_DEVICEID = "deviceId"
CONFIG_PORT = "ipPort"
CONFIG_POLLING_TIME = "pollingTime"
CONFIG_PROMPT_TONE = "promptTone"

MIDEA_DEFAULT_PORT: int = 6444
MIDEA_READ_BUFFER_SIZE: int = 512


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


MIDEA_CONNECT_TIMEOUT: float = _env_float("MIDEA_CONNECT_TIMEOUT", 4.0)
MIDEA_READ_TIMEOUT: float = _env_float("MIDEA_READ_TIMEOUT", 4.0)
MIDEA_MONITOR_DELAY: float = _env_float("MIDEA_MONITOR_DELAY", 10.0)
MIDEA_MONITOR_PERIOD: float = _env_float("MIDEA_MONITOR_PERIOD", 10.0)
MIDEA_STATUS_TRANSITION_HOLD: float = _env_float("MIDEA_STATUS_TRANSITION_HOLD", 0.25)

_metrics_port = os.environ.get("MIDEA_METRICS_PORT", "")
MIDEA_METRICS_PORT: int | None = int(_metrics_port) if _metrics_port.isdigit() else None

MIDEA_DEBUG = os.environ.get("MIDEA_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
MIDEA_LOG_FORMAT: str = os.environ.get("MIDEA_LOG_FORMAT", "human")  # "json", "human", or "both"
MIDEA_LOG_JSON_FILE: str | None = os.environ.get("MIDEA_LOG_JSON_FILE") or None
MIDEA_LOG_HUMAN_OUTPUT: str = os.environ.get("MIDEA_LOG_HUMAN_OUTPUT", "stderr")  # "stdout", "stderr", or file path
MIDEA_LOG_CORRELATION_ENABLED: bool = (
    os.environ.get("MIDEA_LOG_CORRELATION_ENABLED", "true").casefold() in YES_ANSWER
)

# Performance Instrumentation
MIDEA_PERF_TRACKING: bool = os.environ.get("MIDEA_PERF_TRACKING", "true").casefold() in YES_ANSWER
_perf_threshold = os.environ.get("MIDEA_PERF_THRESHOLD_MS", "1000")
MIDEA_PERF_THRESHOLD_MS: int = int(_perf_threshold) if _perf_threshold and _perf_threshold.isdigit() else 1000
