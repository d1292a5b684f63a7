"""Decoded device state.

A Response is built from the 0xC0 status body the appliance returns to both
the status request and the settings command. Instances are frozen so the
supervisor can swap the last known state by reference.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Self

from .command import FanSpeed, OperationalMode, SwingMode
from .exceptions import FrameDecodeError

__all__ = ["RESPONSE_BODY_TYPE", "Response", "Timer"]

RESPONSE_BODY_TYPE: Final = 0xC0
MIN_BODY_LENGTH: Final = 20


@dataclass(frozen=True)
class Timer:
    """On/off timer as reported by the device.

    Attributes:
        status: Whether the timer is armed
        hours: Hours until it fires
        minutes: Minutes on top of ``hours``
    """

    status: bool
    hours: int
    minutes: int

    @classmethod
    def from_bytes(cls, value: int, minutes_nibble: int) -> Self:
        status = bool(value & 0x80)
        if not status:
            return cls(status=False, hours=0, minutes=0)
        hours = (value & 0x7C) >> 2
        minutes = ((value & 0x03) * 15 + minutes_nibble) % 60
        return cls(status=True, hours=hours, minutes=minutes)

    def to_channel(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}"


def _temperature(raw: int, decimal: int) -> float | None:
    if raw == 0xFF:
        return None
    value = (raw - 50) / 2
    if decimal:
        value += decimal * 0.1 if value >= 0 else -decimal * 0.1
    return round(value, 1)


@dataclass(frozen=True)
class Response:
    """Snapshot of every field the device reports in a status body."""

    power_state: bool
    imode_resume: bool
    timer_mode: bool
    appliance_error: bool
    target_temperature: float
    operational_mode: OperationalMode
    fan_speed: FanSpeed
    on_timer: Timer
    off_timer: Timer
    swing_mode: SwingMode
    cozy_sleep: int
    save: bool
    low_frequency_fan: bool
    super_fan: bool
    feel_own: bool
    child_sleep_mode: bool
    exchange_air: bool
    dry_clean: bool
    aux_heat: bool
    eco_mode: bool
    clean_up: bool
    temp_unit: bool
    sleep_function: bool
    turbo_mode: bool
    catch_cold: bool
    night_light: bool
    peak_elec: bool
    natural_fan: bool
    indoor_temperature: float | None
    outdoor_temperature: float | None
    humidity: int

    @classmethod
    def from_body(cls, body: bytes) -> Self:
        """Decode a 0xC0 status body.

        Raises:
            FrameDecodeError: Body is too short or has the wrong type byte
        """
        if len(body) < MIN_BODY_LENGTH:
            raise FrameDecodeError("body_too_short", body)
        if body[0] != RESPONSE_BODY_TYPE:
            raise FrameDecodeError("unexpected_body_type", body)

        target = (body[2] & 0x0F) + 16.0
        if body[2] & 0x10:
            target += 0.5

        return cls(
            power_state=bool(body[1] & 0x01),
            imode_resume=bool(body[1] & 0x04),
            timer_mode=bool(body[1] & 0x10),
            appliance_error=bool(body[1] & 0x80),
            target_temperature=target,
            operational_mode=OperationalMode((body[2] & 0xE0) >> 5),
            fan_speed=FanSpeed(body[3] & 0x7F),
            on_timer=Timer.from_bytes(body[4], (body[6] & 0xF0) >> 4),
            off_timer=Timer.from_bytes(body[5], body[6] & 0x0F),
            swing_mode=SwingMode(body[7] & 0x0F),
            cozy_sleep=body[8] & 0x03,
            save=bool(body[8] & 0x08),
            low_frequency_fan=bool(body[8] & 0x10),
            super_fan=bool(body[8] & 0x20),
            feel_own=bool(body[8] & 0x80),
            child_sleep_mode=bool(body[9] & 0x01),
            exchange_air=bool(body[9] & 0x02),
            dry_clean=bool(body[9] & 0x04),
            aux_heat=bool(body[9] & 0x08),
            eco_mode=bool(body[9] & 0x10),
            clean_up=bool(body[9] & 0x20),
            temp_unit=bool(body[9] & 0x80),
            sleep_function=bool(body[10] & 0x01),
            turbo_mode=bool(body[10] & 0x02),
            catch_cold=bool(body[10] & 0x08),
            night_light=bool(body[10] & 0x10),
            peak_elec=bool(body[10] & 0x20),
            natural_fan=bool(body[10] & 0x40),
            indoor_temperature=_temperature(body[11], body[15] & 0x0F),
            outdoor_temperature=_temperature(body[12], (body[15] & 0xF0) >> 4),
            humidity=body[19] & 0x7F,
        )
