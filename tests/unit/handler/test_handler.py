"""Unit tests for MideaACHandler command routing and lifecycle."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import patch

import pytest

from midea_ac_lan.const import MIDEA_MONITOR_PERIOD
from midea_ac_lan.handler.channels import OnOffType, RefreshType
from midea_ac_lan.handler.handler import INVALID_CONFIG_MESSAGE, MideaACHandler
from midea_ac_lan.handler.status import StatusInfo, ThingStatus, ThingStatusDetail
from midea_ac_lan.protocol.command import CommandBase, CommandSet, OperationalMode
from midea_ac_lan.transport.exceptions import DecodeError, ExchangeError, ReadError
from tests.fixtures.device_frames import make_response_packet, make_status_body
from tests.helpers.expectations import expect_failed_exchange
from tests.helpers.fake_device import FakeDevice


def _make_handler(
    config: dict[str, Any],
    fake_device: FakeDevice,
    status_events: list[StatusInfo],
    channel_listener: Any = None,
) -> MideaACHandler:
    return MideaACHandler(
        config,
        status_listener=status_events.append,
        channel_listener=channel_listener,
        session_factory=fake_device.session_factory,
        monitor_delay=10.0,
        transition_hold=0.0,
    )


@pytest.fixture
async def handler(
    device_config: dict[str, Any],
    fake_device: FakeDevice,
    status_events: list[StatusInfo],
) -> AsyncIterator[MideaACHandler]:
    """Initialized handler connected to the fake device."""
    h = _make_handler(device_config, fake_device, status_events)
    assert await h.initialize() is True
    yield h
    await h.dispose()


async def _sent_command(handler: MideaACHandler, channel: str, value: object) -> CommandSet:
    """Send one channel command and return the CommandSet handed to the supervisor."""
    assert handler.supervisor is not None
    supervisor = handler.supervisor
    with patch.object(supervisor, "send_command_and_monitor", wraps=supervisor.send_command_and_monitor) as spy:
        result = await handler.handle_command(channel, value)
    assert result is not None
    assert result.success
    spy.assert_awaited_once()
    command = spy.await_args.args[0]
    assert isinstance(command, CommandSet)
    return command


class TestInitialize:
    @pytest.mark.asyncio
    async def test_invalid_config_reports_configuration_error(
        self,
        fake_device: FakeDevice,
        status_events: list[StatusInfo],
    ) -> None:
        h = _make_handler({"ipAddress": "", "deviceId": "not-a-number"}, fake_device, status_events)

        assert await h.initialize() is False

        assert h.status == StatusInfo(
            ThingStatus.OFFLINE,
            ThingStatusDetail.CONFIGURATION_ERROR,
            INVALID_CONFIG_MESSAGE,
        )
        assert h.supervisor is None
        assert fake_device.connect_attempts == 0
        assert await h.handle_command("power", "ON") is None

    @pytest.mark.asyncio
    async def test_initialize_connects_and_publishes_channels(
        self,
        device_config: dict[str, Any],
        fake_device: FakeDevice,
        status_events: list[StatusInfo],
    ) -> None:
        channels: dict[str, object] = {}
        h = _make_handler(device_config, fake_device, status_events, channels.__setitem__)

        try:
            assert await h.initialize() is True

            assert h.status.status is ThingStatus.ONLINE
            assert status_events[-1] == StatusInfo(ThingStatus.ONLINE)
            assert len(fake_device.writes) == 1
            assert len(channels) == 31
            assert channels["power"] is OnOffType.ON
            assert channels["target-temperature"] == 24.0
            assert h.channel_states == channels
            assert h.get_last_response() is not None
        finally:
            await h.dispose()

    @pytest.mark.asyncio
    async def test_unreachable_device_goes_offline(
        self,
        device_config: dict[str, Any],
        fake_device: FakeDevice,
        status_events: list[StatusInfo],
    ) -> None:
        fake_device.reachable = False
        h = _make_handler(device_config, fake_device, status_events)

        try:
            assert await h.initialize() is True
            assert h.status.status is ThingStatus.OFFLINE
            assert h.status.detail is ThingStatusDetail.COMMUNICATION_ERROR
            assert h.supervisor is not None
            assert h.supervisor.monitor is None
        finally:
            await h.dispose()

    @pytest.mark.asyncio
    async def test_monitor_period_ignores_polling_time(self, handler: MideaACHandler) -> None:
        assert handler.config is not None
        assert handler.config.polling_time == 0.05
        assert handler.supervisor is not None
        assert handler.supervisor.monitor_period == MIDEA_MONITOR_PERIOD

    @pytest.mark.asyncio
    async def test_command_before_initialize(
        self,
        device_config: dict[str, Any],
        fake_device: FakeDevice,
        status_events: list[StatusInfo],
    ) -> None:
        h = _make_handler(device_config, fake_device, status_events)

        assert await h.handle_command("power", "ON") is None
        assert h.get_last_response() is None
        await h.dispose()


class TestHandleCommand:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(("requested", "expected"), [(10, 17.0), (35, 30.0), ("22.5", 22.5)])
    async def test_target_temperature_is_clamped(
        self,
        handler: MideaACHandler,
        requested: object,
        expected: float,
    ) -> None:
        command = await _sent_command(handler, "target-temperature", requested)

        assert command.target_temperature == expected
        assert command.power_state is True

    @pytest.mark.asyncio
    async def test_command_keeps_last_known_state(self, handler: MideaACHandler) -> None:
        command = await _sent_command(handler, "eco-mode", "ON")

        assert command.eco_mode is True
        assert command.operational_mode is OperationalMode.COOL
        assert command.target_temperature == 24.0

    @pytest.mark.asyncio
    async def test_operational_mode_off_sends_nothing(
        self,
        handler: MideaACHandler,
        fake_device: FakeDevice,
    ) -> None:
        assert handler.supervisor is not None
        supervisor = handler.supervisor
        writes_before = len(fake_device.writes)

        with patch.object(supervisor, "send_command_and_monitor", wraps=supervisor.send_command_and_monitor) as spy:
            assert await handler.handle_command("operational-mode", "OFF") is None

        spy.assert_not_awaited()
        assert len(fake_device.writes) == writes_before
        assert handler.channel_states["power"] is OnOffType.ON

    @pytest.mark.asyncio
    async def test_operational_mode_heat(self, handler: MideaACHandler) -> None:
        command = await _sent_command(handler, "operational-mode", "HEAT")

        assert command.power_state is True
        assert command.operational_mode is OperationalMode.HEAT

    @pytest.mark.asyncio
    async def test_fan_speed_off_powers_down(self, handler: MideaACHandler) -> None:
        command = await _sent_command(handler, "fan-speed", "OFF")

        assert command.power_state is False

    @pytest.mark.asyncio
    async def test_turbo_turns_unit_on(
        self,
        device_config: dict[str, Any],
        fake_device: FakeDevice,
        status_events: list[StatusInfo],
    ) -> None:
        fake_device.default_reply = make_response_packet(make_status_body(b1=0x00))
        h = _make_handler(device_config, fake_device, status_events)
        try:
            _ = await h.initialize()
            command = await _sent_command(h, "turbo-mode", "ON")
        finally:
            await h.dispose()

        assert command.power_state is True
        assert command.turbo_mode is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("channel", "value"),
        [
            ("operational-mode", "TURBO"),
            ("target-temperature", "warm"),
            ("humidity", 50),
            ("on-timer", "01:00"),
            ("no-such-channel", "ON"),
            ("prompt-tone", "ON"),
        ],
    )
    async def test_dropped_commands_send_nothing(
        self,
        handler: MideaACHandler,
        fake_device: FakeDevice,
        channel: str,
        value: object,
    ) -> None:
        writes_before = len(fake_device.writes)

        assert await handler.handle_command(channel, value) is None
        assert len(fake_device.writes) == writes_before

    @pytest.mark.asyncio
    async def test_refresh_polls_status(self, handler: MideaACHandler, fake_device: FakeDevice) -> None:
        assert handler.supervisor is not None
        supervisor = handler.supervisor
        with patch.object(supervisor, "request_status", wraps=supervisor.request_status) as spy:
            result = await handler.handle_command("power", RefreshType.REFRESH)

        assert result is not None
        assert result.success
        spy.assert_awaited_once_with(True)
        assert len(fake_device.writes) == 2

    @pytest.mark.asyncio
    async def test_channels_follow_responses(
        self,
        handler: MideaACHandler,
        fake_device: FakeDevice,
    ) -> None:
        fake_device.default_reply = make_response_packet(make_status_body(b2=0x86))

        _ = await handler.handle_command("operational-mode", "HEAT")

        assert handler.channel_states["operational-mode"] == "HEAT"
        assert handler.channel_states["target-temperature"] == 22.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("reply", "error_type"),
        [
            (ReadError("read failed: connection reset"), ReadError),
            (b"\x5a\x5a" + bytes(100), DecodeError),
        ],
    )
    async def test_failed_exchange_publishes_no_channels(
        self,
        device_config: dict[str, Any],
        fake_device: FakeDevice,
        status_events: list[StatusInfo],
        reply: bytes | Exception,
        error_type: type[ExchangeError],
    ) -> None:
        updates: list[tuple[str, object]] = []
        h = _make_handler(device_config, fake_device, status_events, lambda c, v: updates.append((c, v)))
        try:
            _ = await h.initialize()
            states_before = dict(h.channel_states)
            updates.clear()
            fake_device.replies.append(reply)

            result = await h.handle_command("operational-mode", "HEAT")

            _ = expect_failed_exchange(result, error_type)
            assert updates == []
            assert h.channel_states == states_before
        finally:
            await h.dispose()

    @pytest.mark.asyncio
    async def test_failing_channel_listener_does_not_block_others(
        self,
        device_config: dict[str, Any],
        fake_device: FakeDevice,
        status_events: list[StatusInfo],
    ) -> None:
        seen: dict[str, object] = {}

        def broken(channel_id: str, _value: object) -> None:
            if channel_id == "power":
                msg = "listener bug"
                raise RuntimeError(msg)

        h = _make_handler(device_config, fake_device, status_events, broken)
        h.add_channel_listener(seen.__setitem__)
        try:
            assert await h.initialize() is True
        finally:
            await h.dispose()

        assert len(seen) == 31
        assert seen["power"] is OnOffType.ON
        assert h.status.status is ThingStatus.ONLINE

    @pytest.mark.asyncio
    async def test_prompt_tone_applied_from_config(
        self,
        device_config: dict[str, Any],
        fake_device: FakeDevice,
        status_events: list[StatusInfo],
    ) -> None:
        h = _make_handler({**device_config, "promptTone": True}, fake_device, status_events)
        try:
            _ = await h.initialize()
            command = await _sent_command(h, "power", "ON")
        finally:
            await h.dispose()

        assert command.prompt_tone is True
        # body[1] of the frame that follows the 40 byte packet header
        assert fake_device.writes[-1][40 + 11] & 0x42 == 0x42


class TestDispose:
    @pytest.mark.asyncio
    async def test_dispose_is_idempotent(self, handler: MideaACHandler, fake_device: FakeDevice) -> None:
        await handler.dispose()
        await handler.dispose()

        assert fake_device.closes == 1
        assert await handler.handle_command("power", "ON") is None


class TestRefresh:
    @pytest.mark.asyncio
    async def test_status_request_is_plain_command(self, handler: MideaACHandler) -> None:
        assert handler.supervisor is not None
        supervisor = handler.supervisor
        with patch.object(supervisor, "send_command_and_monitor", wraps=supervisor.send_command_and_monitor) as spy:
            _ = await handler.handle_command("power", RefreshType.REFRESH)

        assert type(spy.await_args.args[0]) is CommandBase
