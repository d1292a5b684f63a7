"""Device handler: the surface an automation host talks to.

The handler validates configuration, owns the ConnectionSupervisor and the
StatusReporter, turns channel commands into settings commands and publishes
channel updates after every successful exchange.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from midea_ac_lan.config import ConfigurationError, DeviceConfig, parse_config
from midea_ac_lan.const import MIDEA_MONITOR_DELAY, MIDEA_MONITOR_PERIOD, MIDEA_STATUS_TRANSITION_HOLD
from midea_ac_lan.correlation import correlation_context
from midea_ac_lan.handler.channels import (
    CHANNEL_SPECS,
    READ_ONLY_CHANNELS,
    ChannelValue,
    RefreshType,
    parse_value,
    response_to_channel_states,
)
from midea_ac_lan.handler.status import StatusInfo, StatusListener, StatusReporter
from midea_ac_lan.logging_abstraction import get_logger
from midea_ac_lan.protocol.codec import MideaCodec
from midea_ac_lan.protocol.command import CommandSet
from midea_ac_lan.protocol.response import Response
from midea_ac_lan.transport.socket_session import SocketSession
from midea_ac_lan.transport.supervisor import ConnectionSupervisor, SessionFactory
from midea_ac_lan.transport.types import ExchangeResult

__all__ = ["INVALID_CONFIG_MESSAGE", "MideaACHandler"]

logger = get_logger(__name__)

INVALID_CONFIG_MESSAGE = "Invalid MideaAC config. Check configuration."

ChannelListener = Callable[[str, ChannelValue], None]


class MideaACHandler:
    """Handler for one Midea air conditioner on the LAN.

    Example:
        handler = MideaACHandler({"ipAddress": "192.168.1.50", "deviceId": "30786325577745"})
        await handler.initialize()
        await handler.handle_command("target-temperature", 22.5)
        await handler.dispose()
    """

    def __init__(
        self,
        config: Mapping[str, Any] | DeviceConfig,
        status_listener: StatusListener | None = None,
        channel_listener: ChannelListener | None = None,
        codec: MideaCodec | None = None,
        session_factory: SessionFactory = SocketSession,
        monitor_delay: float = MIDEA_MONITOR_DELAY,
        transition_hold: float = MIDEA_STATUS_TRANSITION_HOLD,
    ) -> None:
        self._raw_config = config
        self._codec = codec
        self._session_factory = session_factory
        self._monitor_delay = monitor_delay
        self._channel_listeners: list[ChannelListener] = [channel_listener] if channel_listener else []
        self.config: DeviceConfig | None = None
        self.supervisor: ConnectionSupervisor | None = None
        self.status_reporter = StatusReporter(transition_hold=transition_hold, listener=status_listener)
        self.channel_states: dict[str, ChannelValue] = {}

    @property
    def status(self) -> StatusInfo:
        return self.status_reporter.info

    def add_channel_listener(self, listener: ChannelListener) -> None:
        self._channel_listeners.append(listener)

    async def initialize(self) -> bool:
        """Validate the configuration and connect.

        An invalid configuration reports OFFLINE(CONFIGURATION_ERROR) and
        performs no I/O. Returns whether the configuration was accepted.
        """
        try:
            config = parse_config(self._raw_config)
        except ConfigurationError as e:
            logger.warning("Rejecting configuration: %s", e.reason)
            await self.status_reporter.mark_configuration_error(INVALID_CONFIG_MESSAGE)
            return False

        self.config = config
        self.status_reporter.device_id = config.device_id
        supervisor = ConnectionSupervisor(
            config.endpoint,
            self.status_reporter,
            codec=self._codec,
            prompt_tone=config.prompt_tone,
            monitor_delay=self._monitor_delay,
            monitor_period=MIDEA_MONITOR_PERIOD,
            session_factory=self._session_factory,
        )
        supervisor.add_response_listener(self._publish_channels)
        self.supervisor = supervisor

        await self.status_reporter.mark_unknown()
        logger.info(
            "Initializing Midea AC %s",
            config.endpoint,
            extra={
                "device_id": config.device_id,
                "prompt_tone": config.prompt_tone,
                "polling_time": config.polling_time,
            },
        )
        with correlation_context():
            _ = await supervisor.connect()
        return True

    async def handle_command(self, channel_id: str, command: object) -> ExchangeResult | None:
        """Route a channel command to the device.

        Returns the exchange result, or None when nothing was sent.
        """
        supervisor = self.supervisor
        if supervisor is None or supervisor.disposed:
            logger.debug("Ignoring %s=%s: handler not initialized", channel_id, command)
            return None

        with correlation_context():
            if command == RefreshType.REFRESH:
                return await supervisor.request_status(True)

            spec = CHANNEL_SPECS.get(channel_id)
            if spec is None:
                reason = "read-only" if channel_id in READ_ONLY_CHANNELS else "unknown"
                logger.debug("Dropping command for %s channel %s", reason, channel_id)
                return None

            value = parse_value(spec, command)
            if value is None:
                logger.debug(
                    "Dropping unsupported value %r for %s",
                    command,
                    channel_id,
                    extra={"channel": channel_id, "kind": spec.kind.value},
                )
                return None
            if value in spec.ignored:
                logger.debug("Ignoring %s=%s, nothing to send", channel_id, value)
                return None
            if spec.apply is None:
                logger.debug("Channel %s is configuration only, nothing to send", channel_id)
                return None

            command_set = CommandSet.from_response(supervisor.get_last_response())
            spec.apply(command_set, value)
            logger.debug("Sending %r for %s=%s", command_set, channel_id, value)
            return await supervisor.send_command_and_monitor(command_set)

    def get_last_response(self) -> Response | None:
        return self.supervisor.get_last_response() if self.supervisor else None

    async def dispose(self) -> None:
        """Stop monitoring and close the connection. Idempotent."""
        if self.supervisor is not None:
            await self.supervisor.dispose()

    def _publish_channels(self, response: Response) -> None:
        states = response_to_channel_states(response)
        self.channel_states = states
        for channel_id, value in states.items():
            for listener in list(self._channel_listeners):
                try:
                    listener(channel_id, value)
                except Exception:
                    logger.exception("Channel listener %r failed for %s", listener, channel_id)
