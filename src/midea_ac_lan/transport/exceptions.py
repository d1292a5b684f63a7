"""Custom exception types for transport errors.

Every failure of a single exchange maps to one of these classes. The
dispatcher converts them into ExchangeResult values and the supervisor turns
them into status transitions, so none of them escape to handler callers.
"""

from __future__ import annotations

from midea_ac_lan.protocol.exceptions import MideaProtocolError


class ExchangeError(MideaProtocolError):
    """Base class for failures of one send-then-receive exchange.

    Attributes:
        reason: Specific failure reason
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"{type(self).__name__}: {reason}")

    @property
    def tears_down_session(self) -> bool:
        """Whether the socket must be closed after this failure."""
        return False


class ConnectError(ExchangeError):
    """Opening the socket failed (timeout, refused, unreachable)."""


class NotConnectedError(ExchangeError):
    """No open session and the on-demand reconnect did not produce one."""


class WriteError(ExchangeError):
    """Writing the request failed or timed out."""

    @property
    def tears_down_session(self) -> bool:
        return True


class ReadError(ExchangeError):
    """The socket raised while waiting for the response."""

    @property
    def tears_down_session(self) -> bool:
        return True


class ExchangeTimeoutError(ExchangeError):
    """No response byte arrived within the read timeout."""

    @property
    def tears_down_session(self) -> bool:
        return True


class NoDataError(ExchangeError):
    """The peer closed the stream without sending any byte."""

    @property
    def tears_down_session(self) -> bool:
        return True


class DecodeError(ExchangeError):
    """Bytes arrived but did not decode into a response.

    Attributes:
        reason: FrameDecodeError reason
        data_preview: First bytes of the offending data
    """

    def __init__(self, reason: str, data_preview: bytes = b""):
        self.data_preview = data_preview
        super().__init__(reason)
