"""Connection lifecycle, reconnect policy and keep-alive scheduling.

The ConnectionSupervisor owns the SocketSession and the CommandDispatcher for
one appliance. Two actors use it concurrently: foreground callers issuing
commands and the background MonitorJob. Both are serialized by the I/O lock
around every exchange; ``connect``/``disconnect`` share the lifecycle lock.

Lock order is lifecycle lock inside I/O lock (the on-demand reconnect runs
while an exchange holds the I/O lock), never the reverse.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum

from midea_ac_lan.config import Endpoint
from midea_ac_lan.const import (
    MIDEA_CONNECT_TIMEOUT,
    MIDEA_MONITOR_DELAY,
    MIDEA_MONITOR_PERIOD,
    MIDEA_READ_TIMEOUT,
)
from midea_ac_lan.handler.status import StatusReporter, ThingStatusDetail
from midea_ac_lan.logging_abstraction import get_logger
from midea_ac_lan.metrics import registry
from midea_ac_lan.protocol.codec import MideaCodec
from midea_ac_lan.protocol.command import CommandBase
from midea_ac_lan.protocol.response import Response
from midea_ac_lan.transport.dispatcher import CommandDispatcher
from midea_ac_lan.transport.exceptions import ConnectError, DecodeError
from midea_ac_lan.transport.monitor import MonitorJob
from midea_ac_lan.transport.socket_session import SocketSession
from midea_ac_lan.transport.types import ExchangeResult

logger = get_logger(__name__)

SessionFactory = Callable[..., SocketSession]
ResponseListener = Callable[[Response], None]


class ConnectionState(Enum):
    """Connection state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ConnectionSupervisor:
    """Keeps one session to the appliance alive and routes exchanges over it.

    All transport and codec failures end here: they are turned into status
    transitions and ExchangeResult values, never raised to the caller.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        status: StatusReporter,
        codec: MideaCodec | None = None,
        prompt_tone: bool = False,
        connect_timeout: float = MIDEA_CONNECT_TIMEOUT,
        read_timeout: float = MIDEA_READ_TIMEOUT,
        monitor_delay: float = MIDEA_MONITOR_DELAY,
        monitor_period: float = MIDEA_MONITOR_PERIOD,
        session_factory: SessionFactory = SocketSession,
    ) -> None:
        """Initialize the supervisor.

        Args:
            endpoint: Fixed device address and id
            status: Reporter receiving reachability transitions
            codec: Packet codec (a default MideaCodec if None)
            prompt_tone: Whether settings commands make the unit beep
            connect_timeout: Seconds allowed for opening the socket
            read_timeout: Seconds allowed for the first response byte
            monitor_delay: Seconds before the first keep-alive tick
            monitor_period: Seconds between keep-alive ticks
            session_factory: Builds a SocketSession (replaced in tests)
        """
        self.endpoint = endpoint
        self.status = status
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.monitor_delay = monitor_delay
        self.monitor_period = monitor_period
        self._session_factory = session_factory
        self._session: SocketSession | None = None
        self._state = ConnectionState.DISCONNECTED
        self._lifecycle_lock = asyncio.Lock()
        self._io_lock = asyncio.Lock()
        self._monitor: MonitorJob | None = None
        # job cancelled by a session teardown, allowed to reschedule itself
        self._torn_down_monitor: MonitorJob | None = None
        self._disposed = False
        self._response_listeners: list[ResponseListener] = []
        self._dispatcher = CommandDispatcher(
            endpoint,
            codec or MideaCodec(),
            session_provider=lambda: self._session,
            reconnect=self._open_session,
            prompt_tone=prompt_tone,
            read_timeout=read_timeout,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return (
            self._state is ConnectionState.CONNECTED and self._session is not None and self._session.is_open
        )

    @property
    def monitor(self) -> MonitorJob | None:
        return self._monitor

    @property
    def disposed(self) -> bool:
        return self._disposed

    def get_last_response(self) -> Response | None:
        return self._dispatcher.last_response

    def add_response_listener(self, listener: ResponseListener) -> None:
        """Register a callback run after every successfully decoded response."""
        self._response_listeners.append(listener)

    def _set_state(self, state: ConnectionState) -> None:
        self._state = state
        registry.record_connection_state(self.endpoint.device_id, state.value)

    async def _open_session(self) -> bool:
        """Open a fresh session unless one is already open.

        Reports OFFLINE(COMMUNICATION_ERROR) on failure. Performs no
        exchange, so it is safe to call while the I/O lock is held.
        """
        device_id = self.endpoint.device_id
        async with self._lifecycle_lock:
            if self.is_connected:
                return True
            if self._session is not None:
                # half-open: the peer went away without us noticing
                stale, self._session = self._session, None
                self._set_state(ConnectionState.DISCONNECTED)
                registry.record_disconnect(device_id, "stale")
                await stale.close()

            session = self._session_factory(
                self.endpoint.host,
                self.endpoint.port,
                connect_timeout=self.connect_timeout,
                io_timeout=self.read_timeout,
            )
            try:
                await session.connect()
            except ConnectError as e:
                registry.record_connect(device_id, "failure")
                failure = e
            else:
                self._session = session
                self._set_state(ConnectionState.CONNECTED)
                registry.record_connect(device_id, "success")
                return True

        logger.warning(
            "Cannot connect to %s: %s",
            self.endpoint,
            failure.reason,
            extra={"device_id": device_id, "host": self.endpoint.host, "port": self.endpoint.port},
        )
        await self.status.mark_offline_with_message(ThingStatusDetail.COMMUNICATION_ERROR, failure.reason)
        await self.disconnect()
        return False

    async def connect(self) -> bool:
        """Open the session, mark ONLINE and request the initial status.

        No-op when already connected. Returns whether a session is open.
        """
        if self.is_connected:
            return True
        if not await self._open_session():
            return False
        logger.info("Connected to %s", self.endpoint, extra={"device_id": self.endpoint.device_id})
        await self.status.mark_online()
        _ = await self.request_status(True)
        return self.is_connected

    async def disconnect(self, reason: str = "requested") -> None:
        """Cancel the monitor, close the session and report OFFLINE.

        No-op when already disconnected.
        """
        async with self._lifecycle_lock:
            if self._state is ConnectionState.DISCONNECTED and self._session is None:
                return
            _ = self._cancel_monitor()
            session, self._session = self._session, None
            self._set_state(ConnectionState.DISCONNECTED)
            registry.record_disconnect(self.endpoint.device_id, reason)
            if session is not None:
                await session.close()
        logger.info(
            "Disconnected from %s (%s)",
            self.endpoint,
            reason,
            extra={"device_id": self.endpoint.device_id, "reason": reason},
        )
        await self.status.mark_offline()

    async def send_command_and_monitor(self, command: CommandBase) -> ExchangeResult:
        """Entry point for every foreground command.

        Cancels the monitor, performs the exchange (reconnecting if needed)
        and reschedules the monitor whatever the outcome.
        """
        _ = self._cancel_monitor()
        try:
            return await self._guarded_exchange(command)
        finally:
            self._schedule_monitor()

    async def request_status(self, restart_monitor: bool) -> ExchangeResult:
        """Poll the device state.

        Goes through send_command_and_monitor when ``restart_monitor`` is
        true; the monitor itself passes false so it never reschedules itself.
        """
        if restart_monitor:
            return await self.send_command_and_monitor(CommandBase())
        return await self._guarded_exchange(CommandBase())

    async def check_connection(self) -> None:
        """Body of one monitor tick: reconnect when closed, poll otherwise."""
        device_id = self.endpoint.device_id
        if self._session is None or not self._session.is_open:
            registry.record_monitor_tick(device_id, "reconnect")
            logger.debug("Monitor: session closed, reconnecting", extra={"device_id": device_id})
            _ = await self.connect()
        else:
            registry.record_monitor_tick(device_id, "poll")
            _ = await self.request_status(False)

    async def dispose(self) -> None:
        """Stop monitoring and close the session. Idempotent."""
        self._disposed = True
        _ = self._cancel_monitor()
        async with self._lifecycle_lock:
            session, self._session = self._session, None
            if self._state is ConnectionState.CONNECTED:
                self._set_state(ConnectionState.DISCONNECTED)
            if session is not None:
                await session.close()

    async def _guarded_exchange(self, command: CommandBase) -> ExchangeResult:
        async with self._io_lock:
            result = await self._dispatcher.exchange(command)
            if result.error is not None and result.error.tears_down_session:
                await self._teardown_session(type(result.error).__name__)
        await self._apply_outcome(result)
        return result

    async def _teardown_session(self, reason: str) -> None:
        """Drop the failed session so the next exchange reconnects.

        Called with the I/O lock held; status is published by the caller
        once the lock is released.
        """
        async with self._lifecycle_lock:
            job = self._cancel_monitor()
            if job is not None:
                self._torn_down_monitor = job
            session, self._session = self._session, None
            self._set_state(ConnectionState.DISCONNECTED)
            registry.record_disconnect(self.endpoint.device_id, reason)
            if session is not None:
                await session.close()

    async def _apply_outcome(self, result: ExchangeResult) -> None:
        device_id = self.endpoint.device_id
        if result.success and result.response is not None:
            await self.status.mark_online()
            for listener in list(self._response_listeners):
                try:
                    listener(result.response)
                except Exception:
                    logger.exception("Response listener %r failed", listener, extra={"device_id": device_id})
            return

        error = result.error
        if error is None:
            return
        if isinstance(error, DecodeError):
            logger.warning(
                "Discarding undecodable response: %s",
                error.reason,
                extra={"device_id": device_id, "data_preview": error.data_preview.hex()},
            )
            return
        if error.tears_down_session:
            logger.warning(
                "Exchange with %s failed: %s",
                self.endpoint,
                error.reason,
                extra={"device_id": device_id, "error": type(error).__name__},
            )
            logger.info(
                "Disconnected from %s (%s)",
                self.endpoint,
                type(error).__name__,
                extra={"device_id": device_id, "reason": type(error).__name__},
            )
            await self.status.mark_offline_with_message(ThingStatusDetail.COMMUNICATION_ERROR, error.reason)
        # ConnectError / NotConnectedError were reported by _open_session

    async def _monitor_tick(self) -> None:
        job = self._monitor
        await self.check_connection()
        # only a teardown caused by this tick's own poll restarts the
        # monitor; a job cancelled by a foreground command stays stopped
        if job is not None and self._torn_down_monitor is job:
            self._torn_down_monitor = None
            self._schedule_monitor()

    def _schedule_monitor(self) -> None:
        if self._monitor is not None or self._disposed:
            return
        self._monitor = MonitorJob(
            self._monitor_tick,
            delay=self.monitor_delay,
            period=self.monitor_period,
            name=f"midea-monitor-{self.endpoint.device_id}",
        )
        self._monitor.start()

    def _cancel_monitor(self) -> MonitorJob | None:
        job, self._monitor = self._monitor, None
        if job is not None:
            job.cancel()
        return job

    def __repr__(self) -> str:
        return f"ConnectionSupervisor({self.endpoint}, {self._state.value})"
