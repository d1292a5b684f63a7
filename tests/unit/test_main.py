"""Unit tests for the command line entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from midea_ac_lan.config import parse_config
from midea_ac_lan.handler.status import StatusInfo, ThingStatus
from midea_ac_lan.main import build_config, parse_cli, parse_settings, run
from tests.fixtures.device_frames import DEVICE_ID
from tests.helpers.expectations import expect_exception


class TestParseCli:
    def test_defaults(self) -> None:
        args = parse_cli([])

        assert args.host is None
        assert args.settings == []
        assert args.watch is False
        assert args.debug is False

    def test_repeated_settings(self) -> None:
        args = parse_cli(["--host", "10.0.0.2", "--set", "power=ON", "--set", "target-temperature=22.5"])

        assert args.settings == ["power=ON", "target-temperature=22.5"]


class TestParseSettings:
    def test_pairs(self) -> None:
        assert parse_settings(["power=ON", " fan-speed = HIGH "]) == [("power", "ON"), ("fan-speed", "HIGH")]

    @pytest.mark.parametrize("setting", ["power", "=ON"])
    def test_malformed(self, setting: str) -> None:
        _ = expect_exception(parse_settings, ValueError, [setting])


class TestBuildConfig:
    def test_cli_overrides_file_and_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "device.yaml"
        _ = path.write_text(f"ipAddress: 10.0.0.1\ndeviceId: '{DEVICE_ID}'\npollingTime: 15\n")
        for name in ("MIDEA_DEVICE_ID", "MIDEA_POLLING_TIME", "MIDEA_PROMPT_TONE"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("MIDEA_HOST", "10.0.0.2")
        monkeypatch.setenv("MIDEA_PORT", "7000")

        data = build_config(parse_cli(["--config", str(path), "--host", "10.0.0.3"]))

        assert data["ipAddress"] == "10.0.0.3"
        assert data["ipPort"] == "7000"
        assert data["deviceId"] == DEVICE_ID
        assert data["pollingTime"] == 15.0

    def test_partial_file_completed_by_flags(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "device.yaml"
        _ = path.write_text(f"device:\n  deviceId: '{DEVICE_ID}'\n")
        for name in ("MIDEA_HOST", "MIDEA_PORT", "MIDEA_DEVICE_ID", "MIDEA_POLLING_TIME", "MIDEA_PROMPT_TONE"):
            monkeypatch.delenv(name, raising=False)

        config = parse_config(build_config(parse_cli(["--config", str(path), "--host", "10.0.0.3"])))

        assert config.ip_address == "10.0.0.3"
        assert config.device_id == DEVICE_ID


class TestRun:
    @pytest.mark.asyncio
    async def test_invalid_settings_exit_early(self) -> None:
        assert await run(parse_cli(["--set", "power"])) == 1

    @pytest.mark.asyncio
    async def test_unreachable_device_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("MIDEA_HOST", "MIDEA_PORT", "MIDEA_DEVICE_ID"):
            monkeypatch.delenv(name, raising=False)
        handler = MagicMock()
        handler.initialize = AsyncMock(return_value=True)
        handler.dispose = AsyncMock()
        handler.status = StatusInfo(ThingStatus.OFFLINE)

        with patch("midea_ac_lan.main.MideaACHandler", return_value=handler):
            code = await run(parse_cli(["--host", "10.0.0.2", "--device-id", DEVICE_ID]))

        assert code == 1
        handler.dispose.assert_awaited_once()
        handler.handle_command.assert_not_called()

    @pytest.mark.asyncio
    async def test_applies_settings(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        for name in ("MIDEA_HOST", "MIDEA_PORT", "MIDEA_DEVICE_ID"):
            monkeypatch.delenv(name, raising=False)
        handler = MagicMock()
        handler.initialize = AsyncMock(return_value=True)
        handler.dispose = AsyncMock()
        handler.handle_command = AsyncMock(return_value=MagicMock(success=True))
        handler.status = StatusInfo(ThingStatus.ONLINE)
        handler.channel_states = {"power": "ON"}

        with patch("midea_ac_lan.main.MideaACHandler", return_value=handler):
            code = await run(parse_cli(["--host", "10.0.0.2", "--device-id", DEVICE_ID, "--set", "power=ON"]))

        assert code == 0
        handler.handle_command.assert_awaited_once_with("power", "ON")
        assert "power: ON" in capsys.readouterr().out
