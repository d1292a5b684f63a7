"""Shared fixtures for unit tests.

This module provides reusable fixtures for testing the supervisor, handler
and status components against an in-memory appliance.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from midea_ac_lan.config import Endpoint
from midea_ac_lan.handler.status import StatusInfo, StatusReporter
from tests.fixtures.device_frames import DEVICE_ID
from tests.helpers.fake_device import FakeDevice


@pytest.fixture
def fake_device() -> FakeDevice:
    """In-memory appliance answering every request with the default status."""
    return FakeDevice()


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint(host="192.168.1.50", port=6444, device_id=DEVICE_ID)


@pytest.fixture
def status_events() -> list[StatusInfo]:
    """List receiving every status transition published by ``status_reporter``."""
    return []


@pytest.fixture
def status_reporter(status_events: list[StatusInfo]) -> StatusReporter:
    """StatusReporter without the UNKNOWN hold, recording into ``status_events``."""
    return StatusReporter(device_id=DEVICE_ID, transition_hold=0.0, listener=status_events.append)


@pytest.fixture
def device_config() -> dict[str, object]:
    """Raw configuration as a user would write it."""
    return {"ipAddress": "192.168.1.50", "ipPort": 6444, "deviceId": DEVICE_ID, "pollingTime": 0.05}


ChannelCollector = tuple[dict[str, object], Callable[[str, object], None]]


@pytest.fixture
def collect_channels() -> ChannelCollector:
    """Dict of latest channel values plus the listener that fills it."""
    channels: dict[str, object] = {}

    def _listener(channel_id: str, value: object) -> None:
        channels[channel_id] = value

    return channels, _listener
