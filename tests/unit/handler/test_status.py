"""Unit tests for StatusReporter transitions and debouncing."""

from __future__ import annotations

import time

import pytest

from midea_ac_lan.handler.status import StatusInfo, StatusReporter, ThingStatus, ThingStatusDetail

COMM = ThingStatusDetail.COMMUNICATION_ERROR


class TestTransitions:
    @pytest.mark.asyncio
    async def test_starts_unknown(self, status_reporter: StatusReporter, status_events: list[StatusInfo]) -> None:
        assert status_reporter.status is ThingStatus.UNKNOWN
        await status_reporter.mark_unknown()
        assert status_events == []

    @pytest.mark.asyncio
    async def test_online_emitted_once(self, status_reporter: StatusReporter, status_events: list[StatusInfo]) -> None:
        await status_reporter.mark_online()
        await status_reporter.mark_online()

        assert status_events == [StatusInfo(ThingStatus.ONLINE)]

    @pytest.mark.asyncio
    async def test_plain_offline_only_from_online(
        self,
        status_reporter: StatusReporter,
        status_events: list[StatusInfo],
    ) -> None:
        await status_reporter.mark_offline()
        assert status_events == []

        await status_reporter.mark_online()
        await status_reporter.mark_offline()
        await status_reporter.mark_offline()

        assert [e.status for e in status_events] == [ThingStatus.ONLINE, ThingStatus.OFFLINE]

    @pytest.mark.asyncio
    async def test_configuration_error(self, status_reporter: StatusReporter) -> None:
        await status_reporter.mark_configuration_error("bad host")

        assert status_reporter.info == StatusInfo(
            ThingStatus.OFFLINE,
            ThingStatusDetail.CONFIGURATION_ERROR,
            "bad host",
        )


class TestDebounce:
    @pytest.mark.asyncio
    async def test_same_reason_collapses(
        self,
        status_reporter: StatusReporter,
        status_events: list[StatusInfo],
    ) -> None:
        for _ in range(3):
            await status_reporter.mark_offline_with_message(COMM, "connect failed: refused")

        assert status_events == [StatusInfo(ThingStatus.OFFLINE, COMM, "connect failed: refused")]

    @pytest.mark.asyncio
    async def test_reason_change_passes_through_unknown(
        self,
        status_reporter: StatusReporter,
        status_events: list[StatusInfo],
    ) -> None:
        await status_reporter.mark_offline_with_message(COMM, "connect failed: refused")
        await status_reporter.mark_offline_with_message(COMM, "connect timed out")

        assert status_events == [
            StatusInfo(ThingStatus.OFFLINE, COMM, "connect failed: refused"),
            StatusInfo(ThingStatus.UNKNOWN),
            StatusInfo(ThingStatus.OFFLINE, COMM, "connect timed out"),
        ]

    @pytest.mark.asyncio
    async def test_online_to_offline_passes_through_unknown(
        self,
        status_reporter: StatusReporter,
        status_events: list[StatusInfo],
    ) -> None:
        await status_reporter.mark_online()
        await status_reporter.mark_offline_with_message(COMM, "peer closed the connection")

        assert [e.status for e in status_events] == [ThingStatus.ONLINE, ThingStatus.UNKNOWN, ThingStatus.OFFLINE]

    @pytest.mark.asyncio
    async def test_plain_offline_gains_detail_through_unknown(
        self,
        status_reporter: StatusReporter,
        status_events: list[StatusInfo],
    ) -> None:
        await status_reporter.mark_online()
        await status_reporter.mark_offline()
        await status_reporter.mark_offline_with_message(COMM, "connect failed: refused")

        assert status_events == [
            StatusInfo(ThingStatus.ONLINE),
            StatusInfo(ThingStatus.OFFLINE),
            StatusInfo(ThingStatus.UNKNOWN),
            StatusInfo(ThingStatus.OFFLINE, COMM, "connect failed: refused"),
        ]

    @pytest.mark.asyncio
    async def test_unknown_is_held(self) -> None:
        stamps: list[tuple[ThingStatus, float]] = []
        reporter = StatusReporter(
            device_id="1",
            transition_hold=0.05,
            listener=lambda info: stamps.append((info.status, time.monotonic())),
        )

        await reporter.mark_offline_with_message(COMM, "a")
        await reporter.mark_offline_with_message(COMM, "b")

        (_, _), (unknown, held_at), (offline, released_at) = stamps
        assert unknown is ThingStatus.UNKNOWN
        assert offline is ThingStatus.OFFLINE
        assert released_at - held_at >= 0.04


class TestListeners:
    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self) -> None:
        seen: list[StatusInfo] = []

        def broken(_info: StatusInfo) -> None:
            msg = "listener bug"
            raise RuntimeError(msg)

        reporter = StatusReporter(transition_hold=0.0, listener=broken)
        reporter.add_listener(seen.append)

        await reporter.mark_online()

        assert reporter.status is ThingStatus.ONLINE
        assert seen == [StatusInfo(ThingStatus.ONLINE)]


class TestStatusInfo:
    def test_str(self) -> None:
        assert str(StatusInfo(ThingStatus.ONLINE)) == "ONLINE"
        assert str(StatusInfo(ThingStatus.OFFLINE)) == "OFFLINE (NONE)"
        assert (
            str(StatusInfo(ThingStatus.OFFLINE, COMM, "read failed"))
            == "OFFLINE (COMMUNICATION_ERROR): read failed"
        )
