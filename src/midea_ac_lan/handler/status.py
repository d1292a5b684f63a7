"""Observable device status with transition debouncing.

Repeated identical failures collapse into a single OFFLINE transition. Any
other move to OFFLINE with a reason is made visible by passing
through UNKNOWN for a short hold before the new OFFLINE is published.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from midea_ac_lan.const import MIDEA_STATUS_TRANSITION_HOLD
from midea_ac_lan.logging_abstraction import get_logger
from midea_ac_lan.metrics import registry

logger = get_logger(__name__)


class ThingStatus(StrEnum):
    UNKNOWN = "UNKNOWN"
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class ThingStatusDetail(StrEnum):
    NONE = "NONE"
    COMMUNICATION_ERROR = "COMMUNICATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


@dataclass(frozen=True)
class StatusInfo:
    """One published status value."""

    status: ThingStatus
    detail: ThingStatusDetail = ThingStatusDetail.NONE
    description: str | None = None

    def __str__(self) -> str:
        if self.status is not ThingStatus.OFFLINE:
            return self.status.value
        text = f"{self.status.value} ({self.detail.value})"
        return f"{text}: {self.description}" if self.description else text


StatusListener = Callable[[StatusInfo], None]


class StatusReporter:
    """Publishes UNKNOWN / ONLINE / OFFLINE transitions to listeners.

    Transitions are serialized with a lock so the UNKNOWN hold of one
    reason change cannot interleave with another transition.
    """

    def __init__(
        self,
        device_id: str = "",
        transition_hold: float = MIDEA_STATUS_TRANSITION_HOLD,
        listener: StatusListener | None = None,
    ) -> None:
        self.device_id = device_id
        self.transition_hold = transition_hold
        self._info = StatusInfo(ThingStatus.UNKNOWN)
        self._listeners: list[StatusListener] = [listener] if listener else []
        self._lock = asyncio.Lock()

    @property
    def info(self) -> StatusInfo:
        return self._info

    @property
    def status(self) -> ThingStatus:
        return self._info.status

    def add_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def _emit(self, info: StatusInfo) -> None:
        self._info = info
        registry.record_status_transition(self.device_id, info.status.value, info.detail.value)
        logger.info(
            "Status -> %s",
            info,
            extra={"device_id": self.device_id, "status": info.status.value, "detail": info.detail.value},
        )
        for listener in list(self._listeners):
            try:
                listener(info)
            except Exception:
                logger.exception(
                    "Status listener %r failed",
                    listener,
                    extra={"device_id": self.device_id},
                )

    async def mark_unknown(self) -> None:
        async with self._lock:
            if self._info.status is not ThingStatus.UNKNOWN:
                self._emit(StatusInfo(ThingStatus.UNKNOWN))

    async def mark_online(self) -> None:
        async with self._lock:
            if self._info.status is not ThingStatus.ONLINE:
                self._emit(StatusInfo(ThingStatus.ONLINE))

    async def mark_offline(self) -> None:
        """Report OFFLINE without a reason, only when currently ONLINE."""
        async with self._lock:
            if self._info.status is ThingStatus.ONLINE:
                self._emit(StatusInfo(ThingStatus.OFFLINE))

    async def mark_offline_with_message(self, detail: ThingStatusDetail, message: str | None) -> None:
        """Report OFFLINE with a reason, debounced.

        Nothing is emitted when already OFFLINE with a detail for the same
        detail and message. Every other transition goes through UNKNOWN,
        held for ``transition_hold`` seconds, before the new OFFLINE.
        """
        async with self._lock:
            current = self._info
            if (
                current.status is ThingStatus.OFFLINE
                and current.detail is not ThingStatusDetail.NONE
                and current.detail is detail
                and current.description == message
            ):
                return
            # already UNKNOWN (never connected): hold without a duplicate emit
            if current.status is not ThingStatus.UNKNOWN:
                self._emit(StatusInfo(ThingStatus.UNKNOWN))
            if self.transition_hold > 0:
                await asyncio.sleep(self.transition_hold)
            self._emit(StatusInfo(ThingStatus.OFFLINE, detail, message))

    async def mark_configuration_error(self, message: str) -> None:
        await self.mark_offline_with_message(ThingStatusDetail.CONFIGURATION_ERROR, message)
