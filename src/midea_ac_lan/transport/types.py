"""Core dataclasses for the transport layer."""

from __future__ import annotations

from dataclasses import dataclass

from midea_ac_lan.protocol.response import Response
from midea_ac_lan.transport.exceptions import ExchangeError


@dataclass(frozen=True)
class ExchangeResult:
    """Result of CommandDispatcher.exchange().

    Attributes:
        success: Whether a response was received and decoded
        correlation_id: UUID v7 for observability and event tracing
        response: Decoded response (None if success=False)
        error: Failure (None if success=True)
        elapsed_ms: Wall time of the exchange in milliseconds
    """

    success: bool
    correlation_id: str  # UUID v7
    response: Response | None = None
    error: ExchangeError | None = None
    elapsed_ms: float = 0.0

    @property
    def reason(self) -> str:
        """Error reason, empty string on success."""
        return self.error.reason if self.error is not None else ""
