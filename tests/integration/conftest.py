"""Fixtures for integration tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from tests.fixtures.device_frames import DEVICE_ID
from tests.helpers.mock_device_server import MockDeviceServer


@pytest.fixture
async def mock_device() -> AsyncGenerator[MockDeviceServer]:
    """Running mock appliance on an ephemeral localhost port."""
    server = MockDeviceServer()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def device_id() -> str:
    return DEVICE_ID
