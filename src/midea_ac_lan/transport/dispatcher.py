"""Single send-then-receive exchange with the appliance.

The dispatcher performs exactly one exchange per call and reports the
outcome as an ExchangeResult. It holds no locks: the supervisor serializes
calls with its I/O lock.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from midea_ac_lan.config import Endpoint
from midea_ac_lan.const import MIDEA_READ_BUFFER_SIZE, MIDEA_READ_TIMEOUT
from midea_ac_lan.correlation import ensure_correlation_id
from midea_ac_lan.instrumentation import measure_time
from midea_ac_lan.logging_abstraction import get_logger
from midea_ac_lan.metrics import registry
from midea_ac_lan.protocol.codec import MideaCodec
from midea_ac_lan.protocol.command import CommandBase, CommandSet
from midea_ac_lan.protocol.exceptions import FrameDecodeError, FrameEncodeError
from midea_ac_lan.protocol.response import Response
from midea_ac_lan.transport.exceptions import (
    DecodeError,
    ExchangeError,
    NotConnectedError,
)
from midea_ac_lan.transport.socket_session import SocketSession
from midea_ac_lan.transport.types import ExchangeResult

logger = get_logger(__name__)

SessionProvider = Callable[[], SocketSession | None]
ReconnectHook = Callable[[], Awaitable[bool]]


class CommandDispatcher:
    """Encodes a command, writes it, reads the reply and decodes it.

    Args:
        endpoint: Device the session talks to
        codec: Packet encoder/decoder
        session_provider: Returns the supervisor's current session (or None)
        reconnect: Called once when the session is not open; returns True when
            a new session was opened
        prompt_tone: Whether settings commands should make the unit beep
        read_timeout: Seconds to wait for the first response byte
    """

    def __init__(
        self,
        endpoint: Endpoint,
        codec: MideaCodec,
        session_provider: SessionProvider,
        reconnect: ReconnectHook,
        prompt_tone: bool = False,
        read_timeout: float = MIDEA_READ_TIMEOUT,
        read_buffer_size: int = MIDEA_READ_BUFFER_SIZE,
    ) -> None:
        self.endpoint = endpoint
        self.codec = codec
        self.prompt_tone = prompt_tone
        self.read_timeout = read_timeout
        self.read_buffer_size = read_buffer_size
        self._session_provider = session_provider
        self._reconnect = reconnect
        self._last_response: Response | None = None

    @property
    def last_response(self) -> Response | None:
        return self._last_response

    async def exchange(self, command: CommandBase) -> ExchangeResult:
        """Run one exchange. Never raises transport or codec errors."""
        correlation_id = ensure_correlation_id()
        device_id = self.endpoint.device_id
        command_name = type(command).__name__
        start_time = time.perf_counter()

        try:
            response = await self._exchange(command)
        except ExchangeError as e:
            elapsed_ms = measure_time(start_time)
            registry.record_exchange(device_id, command_name, type(e).__name__)
            if isinstance(e, DecodeError):
                registry.record_decode_error(device_id, e.reason)
            logger.debug(
                "Exchange %s failed after %.1fms: %s",
                command_name,
                elapsed_ms,
                e.reason,
                extra={"device_id": device_id, "error": type(e).__name__, "elapsed_ms": elapsed_ms},
            )
            return ExchangeResult(success=False, correlation_id=correlation_id, error=e, elapsed_ms=elapsed_ms)

        elapsed_ms = measure_time(start_time)
        self._last_response = response
        registry.record_exchange(device_id, command_name, "success")
        registry.record_exchange_latency(device_id, elapsed_ms / 1000)
        logger.debug(
            "Exchange %s completed in %.1fms",
            command_name,
            elapsed_ms,
            extra={"device_id": device_id, "elapsed_ms": elapsed_ms},
        )
        return ExchangeResult(success=True, correlation_id=correlation_id, response=response, elapsed_ms=elapsed_ms)

    async def _exchange(self, command: CommandBase) -> Response:
        if isinstance(command, CommandSet):
            command.prompt_tone = self.prompt_tone

        try:
            packet = self.codec.encode(command, self.endpoint.device_id)
        except FrameEncodeError as e:
            # nothing reached the wire, treat like an undecodable exchange
            raise DecodeError(e.reason) from e

        session = self._session_provider()
        if session is None or not session.is_open:
            logger.info(
                "Session not open, reconnecting before %s",
                type(command).__name__,
                extra={"device_id": self.endpoint.device_id},
            )
            if not await self._reconnect():
                msg = f"could not reconnect to {self.endpoint.host}:{self.endpoint.port}"
                raise NotConnectedError(msg)
            session = self._session_provider()
            if session is None:
                msg = "reconnect reported success without a session"
                raise NotConnectedError(msg)

        await session.write(packet)
        data = await session.read(self.read_buffer_size, self.read_timeout)

        try:
            return self.codec.decode(data)
        except FrameDecodeError as e:
            raise DecodeError(e.reason, e.data_preview) from e
