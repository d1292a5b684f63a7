"""Transport package - socket session, exchange dispatch and connection supervision."""

from midea_ac_lan.transport.exceptions import (
    ConnectError,
    DecodeError,
    ExchangeError,
    ExchangeTimeoutError,
    NoDataError,
    NotConnectedError,
    ReadError,
    WriteError,
)
from midea_ac_lan.transport.types import ExchangeResult

__all__ = [
    "ConnectError",
    "DecodeError",
    "ExchangeError",
    "ExchangeResult",
    "ExchangeTimeoutError",
    "NoDataError",
    "NotConnectedError",
    "ReadError",
    "WriteError",
]
