"""Asyncio TCP session to one appliance with deadlines and instrumentation."""

from __future__ import annotations

import asyncio
import time

from midea_ac_lan.const import MIDEA_CONNECT_TIMEOUT, MIDEA_READ_BUFFER_SIZE, MIDEA_READ_TIMEOUT
from midea_ac_lan.instrumentation import measure_time, timed_async
from midea_ac_lan.logging_abstraction import get_logger
from midea_ac_lan.transport.exceptions import (
    ConnectError,
    ExchangeTimeoutError,
    NoDataError,
    ReadError,
    WriteError,
)

logger = get_logger(__name__)


class SocketSession:
    """Async TCP session with timeouts and instrumentation.

    Unlike a bare stream pair, every failure is raised as a typed
    ExchangeError so the dispatcher can classify it.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = MIDEA_CONNECT_TIMEOUT,
        io_timeout: float = MIDEA_READ_TIMEOUT,
        max_read_size: int = MIDEA_READ_BUFFER_SIZE,
    ):
        """
        Initialize session parameters.

        Args:
            host: Target host
            port: Target port
            connect_timeout: Connection timeout in seconds
            io_timeout: Default read/write timeout in seconds
            max_read_size: Maximum bytes to read in one operation
        """
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.io_timeout = io_timeout
        self.max_read_size = max_read_size
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None

    def _ctx(self, **fields: object) -> dict[str, object]:
        return {"host": self.host, "port": self.port, **fields}

    @timed_async("socket_connect")
    async def connect(self) -> None:
        """
        Establish the TCP connection with timeout.

        Raises:
            ConnectError: Timed out, refused, or any other OS error
        """
        start_time = time.perf_counter()
        logger.info(
            "Connecting to %s:%d (timeout: %.1fs)",
            self.host,
            self.port,
            self.connect_timeout,
            extra=self._ctx(timeout=self.connect_timeout),
        )
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        except TimeoutError as e:
            elapsed_ms = measure_time(start_time)
            logger.warning(
                "Connection to %s:%d timed out after %.1fms",
                self.host,
                self.port,
                elapsed_ms,
                extra=self._ctx(elapsed_ms=elapsed_ms, error="timeout"),
            )
            msg = f"connect to {self.host}:{self.port} timed out"
            raise ConnectError(msg) from e
        except OSError as e:
            elapsed_ms = measure_time(start_time)
            logger.warning(
                "Connection to %s:%d failed after %.1fms: %s",
                self.host,
                self.port,
                elapsed_ms,
                e,
                extra=self._ctx(elapsed_ms=elapsed_ms, error=str(e)),
            )
            msg = f"connect to {self.host}:{self.port} failed: {e}"
            raise ConnectError(msg) from e

        elapsed_ms = measure_time(start_time)
        logger.info(
            "Connected to %s:%d in %.1fms",
            self.host,
            self.port,
            elapsed_ms,
            extra=self._ctx(elapsed_ms=elapsed_ms),
        )

    async def write(self, data: bytes) -> None:
        """
        Send data with timeout.

        Raises:
            WriteError: Session not open, drain failed or timed out
        """
        if not self.is_open or self.writer is None:
            msg = "session is not open"
            raise WriteError(msg)

        start_time = time.perf_counter()
        logger.debug(
            "Sending %d bytes to %s:%d",
            len(data),
            self.host,
            self.port,
            extra=self._ctx(bytes=len(data)),
        )
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.io_timeout)
        except TimeoutError as e:
            msg = f"write timed out after {measure_time(start_time):.1f}ms"
            raise WriteError(msg) from e
        except OSError as e:
            msg = f"write failed: {e}"
            raise WriteError(msg) from e

        logger.debug(
            "Sent %d bytes to %s:%d in %.1fms",
            len(data),
            self.host,
            self.port,
            measure_time(start_time),
            extra=self._ctx(bytes=len(data)),
        )

    async def read(self, max_bytes: int | None = None, timeout: float | None = None) -> bytes:
        """
        Receive whatever arrives first, waiting at most ``timeout`` seconds.

        The result may be shorter than ``max_bytes``.

        Raises:
            ExchangeTimeoutError: Nothing arrived in time
            NoDataError: Peer closed the stream without sending a byte
            ReadError: Session not open or the socket raised
        """
        if self.reader is None:
            msg = "session is not open"
            raise ReadError(msg)

        max_bytes = max_bytes or self.max_read_size
        timeout = self.io_timeout if timeout is None else timeout

        start_time = time.perf_counter()
        try:
            data = await asyncio.wait_for(self.reader.read(max_bytes), timeout=timeout)
        except TimeoutError as e:
            msg = f"no response within {timeout:.1f}s"
            raise ExchangeTimeoutError(msg) from e
        except OSError as e:
            msg = f"read failed: {e}"
            raise ReadError(msg) from e

        elapsed_ms = measure_time(start_time)
        if not data:
            logger.warning(
                "Connection closed by %s:%d after %.1fms",
                self.host,
                self.port,
                elapsed_ms,
                extra=self._ctx(elapsed_ms=elapsed_ms),
            )
            msg = "peer closed the connection"
            raise NoDataError(msg)

        logger.debug(
            "Received %d bytes from %s:%d in %.1fms",
            len(data),
            self.host,
            self.port,
            elapsed_ms,
            extra=self._ctx(bytes=len(data), elapsed_ms=elapsed_ms),
        )
        return data

    async def close(self) -> None:
        """Close the session. Safe to call repeatedly."""
        writer = self.writer
        self.writer = None
        self.reader = None
        if writer is None:
            return

        logger.info(
            "Closing connection to %s:%d",
            self.host,
            self.port,
            extra=self._ctx(),
        )
        try:
            writer.close()
            await writer.wait_closed()
        except (OSError, ConnectionError) as e:
            logger.warning(
                "Error closing connection: %s",
                e,
                extra=self._ctx(error=str(e), error_type=type(e).__name__),
            )

    @property
    def is_open(self) -> bool:
        """True while the stream pair exists and neither side reports closure.

        A reader at EOF means the peer reset or closed its side, which a
        plain "writer exists" check would miss.
        """
        if self.writer is None or self.reader is None:
            return False
        return not self.writer.is_closing() and not self.reader.at_eof()

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SocketSession({self.host}:{self.port}, {status})"
